"""
Preview Renderer - Reference emulation of the browser CSS filter graph.

Implements the Filter Effects shorthand functions (grayscale, sepia,
saturate, brightness, contrast) as the browser evaluates them: in sRGB
space, one primitive after another, clamping to [0, 1] after each. Used by
the calibration check to see what the live preview shows.
"""

import numpy as np

from generators.filters.projection import PreviewFilterDescriptor, PreviewOperation


def grayscale_matrix(amount: float) -> np.ndarray:
    """feColorMatrix for grayscale(amount), amount in 0-1."""
    a = 1 - min(max(amount, 0.0), 1.0)
    return np.array([
        [0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a],
    ], dtype=np.float64)


def sepia_matrix(amount: float) -> np.ndarray:
    """feColorMatrix for sepia(amount), amount in 0-1."""
    a = 1 - min(max(amount, 0.0), 1.0)
    return np.array([
        [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
        [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
        [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
    ], dtype=np.float64)


def saturate_matrix(amount: float) -> np.ndarray:
    """feColorMatrix type="saturate", amount unbounded above (1 = identity)."""
    s = max(amount, 0.0)
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float64)


def _apply_operation(rgb: np.ndarray, operation: PreviewOperation, value: float) -> np.ndarray:
    amount = value / 100.0

    if operation is PreviewOperation.GRAYSCALE:
        result = rgb @ grayscale_matrix(amount).T
    elif operation is PreviewOperation.SEPIA:
        result = rgb @ sepia_matrix(amount).T
    elif operation is PreviewOperation.SATURATE:
        result = rgb @ saturate_matrix(amount).T
    elif operation is PreviewOperation.BRIGHTNESS:
        result = rgb * amount
    else:
        result = rgb * amount + (0.5 - 0.5 * amount)

    return np.clip(result, 0.0, 1.0)


def render_preview(image: np.ndarray, descriptor: PreviewFilterDescriptor) -> np.ndarray:
    """
    Render an RGBA image the way the live preview displays it.

    Args:
        image: RGBA uint8 array
        descriptor: Output of project_to_preview()

    Returns:
        New RGBA uint8 array (the input itself for the no-op descriptor)
    """
    if descriptor.is_noop:
        return image

    rgb = image[:, :, :3].astype(np.float64) / 255.0
    for operation, value in descriptor.operations:
        rgb = _apply_operation(rgb, operation, value)

    result = image.copy()
    result[:, :, :3] = np.clip(np.rint(rgb * 255.0), 0, 255).astype(np.uint8)
    return result
