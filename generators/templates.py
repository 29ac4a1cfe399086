"""
Strip Templates - Static catalog of photo strip layouts.

A template describes the grid (columns, rows, slot count, aspect ratio),
the style (background, border, spacing, photo corner radius) and the footer
(text, font family, color, size). Spacing values are in preview pixels,
where the preview strip is REFERENCE_WIDTH wide; the compositor scales them
to the output width.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)


class TemplateCategory(str, Enum):
    CLASSIC = "classic"
    MODERN = "modern"
    PARTY = "party"
    MINIMAL = "minimal"
    VINTAGE = "vintage"


class TemplateId(str, Enum):
    """Known template ids."""
    CLASSIC_2X2 = "classic-2x2"
    CLASSIC_1X4 = "classic-1x4"
    CLASSIC_1X3 = "classic-1x3"
    CLASSIC_2X3 = "classic-2x3"
    MODERN_GRADIENT = "modern-gradient"
    MODERN_DARK = "modern-dark"
    MODERN_GLASS = "modern-glass"
    MODERN_PURPLE = "modern-purple"
    MODERN_MINT = "modern-mint"
    PARTY_NEON = "party-neon"
    PARTY_BIRTHDAY = "party-birthday"
    PARTY_NEWYEAR = "party-newyear"
    PARTY_RAINBOW = "party-rainbow"
    PARTY_DISCO = "party-disco"
    MINIMAL_CLEAN = "minimal-clean"
    MINIMAL_LINE = "minimal-line"
    MINIMAL_FLOAT = "minimal-float"
    MINIMAL_MONO = "minimal-mono"
    VINTAGE_POLAROID = "vintage-polaroid"
    VINTAGE_FILM = "vintage-film"
    VINTAGE_SEPIA = "vintage-sepia"
    VINTAGE_NEWSPAPER = "vintage-newspaper"
    VINTAGE_FADED = "vintage-faded"


@dataclass(frozen=True)
class TemplateLayout:
    cols: int
    rows: int
    count: int
    aspect_ratio: str  # "w/h"

    @property
    def aspect(self) -> float:
        """Aspect ratio as width / height."""
        w, _, h = self.aspect_ratio.partition("/")
        return float(w) / float(h or 1)


@dataclass(frozen=True)
class TemplateStyle:
    background_color: str
    gap: float
    padding: float
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    border_radius: Optional[float] = None
    photo_radius: Optional[float] = None


@dataclass(frozen=True)
class TemplateFooter:
    text: str
    font: str
    color: str
    size: Optional[str] = None  # CSS length, e.g. "0.75rem"


@dataclass(frozen=True)
class Template:
    id: TemplateId
    name: str
    category: TemplateCategory
    layout: TemplateLayout
    style: TemplateStyle
    footer: TemplateFooter

    def to_dict(self) -> dict:
        """Convert to dictionary with camelCase keys for the JavaScript frontend."""
        style = {
            "backgroundColor": self.style.background_color,
            "gap": self.style.gap,
            "padding": self.style.padding,
        }
        for key, value in (
            ("borderColor", self.style.border_color),
            ("borderWidth", self.style.border_width),
            ("borderRadius", self.style.border_radius),
            ("photoRadius", self.style.photo_radius),
        ):
            if value is not None:
                style[key] = value

        footer = {"text": self.footer.text, "font": self.footer.font, "color": self.footer.color}
        if self.footer.size is not None:
            footer["size"] = self.footer.size

        return {
            "id": self.id.value,
            "name": self.name,
            "category": self.category.value,
            "layout": {
                "cols": self.layout.cols,
                "rows": self.layout.rows,
                "count": self.layout.count,
                "aspectRatio": self.layout.aspect_ratio,
            },
            "style": style,
            "footer": footer,
        }


def _template(
    template_id: TemplateId,
    name: str,
    category: TemplateCategory,
    grid: tuple[int, int, int, str],
    style: TemplateStyle,
    footer: TemplateFooter,
) -> Template:
    cols, rows, count, aspect_ratio = grid
    return Template(
        id=template_id,
        name=name,
        category=category,
        layout=TemplateLayout(cols=cols, rows=rows, count=count, aspect_ratio=aspect_ratio),
        style=style,
        footer=footer,
    )


_BRAND_FOOTER = TemplateFooter(text="OurBooth • 2025", font="monospace", color="#a3a3a3")
_NO_FOOTER = TemplateFooter(text="", font="sans-serif", color="#000000")


# =============================================================================
# TEMPLATE CATALOG (first entry is the default)
# =============================================================================

TEMPLATES: tuple[Template, ...] = (
    # Classic
    _template(
        TemplateId.CLASSIC_2X2, "Classic Grid", TemplateCategory.CLASSIC, (2, 2, 4, "2/3"),
        TemplateStyle(background_color="#ffffff", gap=10, padding=16),
        _BRAND_FOOTER,
    ),
    _template(
        TemplateId.CLASSIC_1X4, "Photo Strip", TemplateCategory.CLASSIC, (1, 4, 4, "1/4"),
        TemplateStyle(background_color="#ffffff", gap=8, padding=12),
        _BRAND_FOOTER,
    ),
    _template(
        TemplateId.CLASSIC_1X3, "Triple Strip", TemplateCategory.CLASSIC, (1, 3, 3, "1/3"),
        TemplateStyle(background_color="#ffffff", gap=8, padding=12),
        _BRAND_FOOTER,
    ),
    _template(
        TemplateId.CLASSIC_2X3, "Six Grid", TemplateCategory.CLASSIC, (2, 3, 6, "2/4"),
        TemplateStyle(background_color="#ffffff", gap=8, padding=14),
        _BRAND_FOOTER,
    ),
    # Modern
    _template(
        TemplateId.MODERN_GRADIENT, "Rose Gradient", TemplateCategory.MODERN, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="linear-gradient(135deg, #f43f5e 0%, #ec4899 100%)",
            gap=12, padding=20, photo_radius=8,
        ),
        TemplateFooter(text="OURBOOTH", font="sans-serif", color="#ffffff", size="0.75rem"),
    ),
    _template(
        TemplateId.MODERN_DARK, "Dark Mode", TemplateCategory.MODERN, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="#0a0a0a", border_color="#262626", border_width=1,
            gap=10, padding=16, photo_radius=4,
        ),
        TemplateFooter(text="OURBOOTH", font="sans-serif", color="#525252"),
    ),
    _template(
        TemplateId.MODERN_GLASS, "Glassmorphism", TemplateCategory.MODERN, (1, 4, 4, "1/4"),
        TemplateStyle(
            background_color="rgba(255,255,255,0.1)", border_color="rgba(255,255,255,0.2)",
            border_width=1, gap=8, padding=12, photo_radius=12,
        ),
        TemplateFooter(text="ourbooth", font="sans-serif", color="rgba(255,255,255,0.6)"),
    ),
    _template(
        TemplateId.MODERN_PURPLE, "Violet Dream", TemplateCategory.MODERN, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="linear-gradient(180deg, #7c3aed 0%, #4f46e5 100%)",
            gap=12, padding=20, photo_radius=16,
        ),
        TemplateFooter(text="OURBOOTH", font="sans-serif", color="#e0e7ff"),
    ),
    _template(
        TemplateId.MODERN_MINT, "Mint Fresh", TemplateCategory.MODERN, (1, 3, 3, "1/3"),
        TemplateStyle(
            background_color="#ecfdf5", border_color="#6ee7b7", border_width=2,
            gap=10, padding=16, photo_radius=8,
        ),
        TemplateFooter(text="ourbooth", font="sans-serif", color="#059669"),
    ),
    # Party
    _template(
        TemplateId.PARTY_NEON, "Neon Nights", TemplateCategory.PARTY, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="#0f0f23", border_color="#00ffff", border_width=3,
            gap=10, padding=16, photo_radius=0,
        ),
        TemplateFooter(text="★ PARTY TIME ★", font="sans-serif", color="#ff00ff"),
    ),
    _template(
        TemplateId.PARTY_BIRTHDAY, "Birthday Bash", TemplateCategory.PARTY, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="#fef3c7", border_color="#f59e0b", border_width=4,
            gap=12, padding=20, photo_radius=20,
        ),
        TemplateFooter(text="🎂 HAPPY BIRTHDAY 🎂", font="sans-serif", color="#b45309"),
    ),
    _template(
        TemplateId.PARTY_NEWYEAR, "New Year", TemplateCategory.PARTY, (1, 4, 4, "1/4"),
        TemplateStyle(
            background_color="#1e1b4b", border_color="#fbbf24", border_width=3,
            gap=6, padding=10, photo_radius=4,
        ),
        TemplateFooter(text="✨ 2025 ✨", font="sans-serif", color="#fbbf24"),
    ),
    _template(
        TemplateId.PARTY_RAINBOW, "Rainbow Pop", TemplateCategory.PARTY, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="linear-gradient(45deg, #ef4444, #f97316, #eab308, #22c55e, #3b82f6, #8b5cf6)",
            gap=10, padding=18, photo_radius=12,
        ),
        TemplateFooter(text="CELEBRATE!", font="sans-serif", color="#ffffff"),
    ),
    _template(
        TemplateId.PARTY_DISCO, "Disco Fever", TemplateCategory.PARTY, (1, 3, 3, "1/3"),
        TemplateStyle(
            background_color="#000000", border_color="#c026d3", border_width=2,
            gap=8, padding=12, photo_radius=50,
        ),
        TemplateFooter(text="🪩 DISCO 🪩", font="sans-serif", color="#f0abfc"),
    ),
    # Minimal
    _template(
        TemplateId.MINIMAL_CLEAN, "Clean", TemplateCategory.MINIMAL, (2, 2, 4, "2/3"),
        TemplateStyle(background_color="#fafafa", gap=2, padding=8, photo_radius=0),
        _NO_FOOTER,
    ),
    _template(
        TemplateId.MINIMAL_LINE, "Thin Line", TemplateCategory.MINIMAL, (1, 4, 4, "1/4"),
        TemplateStyle(
            background_color="#ffffff", border_color="#e5e5e5", border_width=1,
            gap=6, padding=10, photo_radius=0,
        ),
        _NO_FOOTER,
    ),
    _template(
        TemplateId.MINIMAL_FLOAT, "Floating", TemplateCategory.MINIMAL, (2, 2, 4, "2/3"),
        TemplateStyle(background_color="transparent", gap=16, padding=0, photo_radius=4),
        _NO_FOOTER,
    ),
    _template(
        TemplateId.MINIMAL_MONO, "Monochrome", TemplateCategory.MINIMAL, (1, 3, 3, "1/3"),
        TemplateStyle(background_color="#171717", gap=4, padding=8, photo_radius=0),
        _NO_FOOTER,
    ),
    # Vintage
    _template(
        TemplateId.VINTAGE_POLAROID, "Polaroid", TemplateCategory.VINTAGE, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="#fffbeb", border_color="#d4d4d4", border_width=1,
            gap=16, padding=24, photo_radius=0,
        ),
        TemplateFooter(text="Memories", font="serif", color="#78716c"),
    ),
    _template(
        TemplateId.VINTAGE_FILM, "Film Strip", TemplateCategory.VINTAGE, (1, 4, 4, "1/4"),
        TemplateStyle(
            background_color="#1c1917", border_color="#44403c", border_width=8,
            gap=4, padding=20, photo_radius=0,
        ),
        TemplateFooter(text="KODAK 400", font="monospace", color="#fbbf24"),
    ),
    _template(
        TemplateId.VINTAGE_SEPIA, "Sepia Dreams", TemplateCategory.VINTAGE, (2, 2, 4, "2/3"),
        TemplateStyle(
            background_color="#fef3e2", border_color="#c4a574", border_width=3,
            gap=8, padding=16, photo_radius=2,
        ),
        TemplateFooter(text="circa 2025", font="serif", color="#8b7355"),
    ),
    _template(
        TemplateId.VINTAGE_NEWSPAPER, "Newspaper", TemplateCategory.VINTAGE, (2, 3, 6, "2/4"),
        TemplateStyle(
            background_color="#f5f5dc", border_color="#000000", border_width=1,
            gap=4, padding=12, photo_radius=0,
        ),
        TemplateFooter(text="THE DAILY BOOTH", font="serif", color="#1a1a1a"),
    ),
    _template(
        TemplateId.VINTAGE_FADED, "Faded Glory", TemplateCategory.VINTAGE, (1, 3, 3, "1/3"),
        TemplateStyle(background_color="#fdf4e3", gap=10, padding=14, photo_radius=4),
        TemplateFooter(text="memories fade, photos don't", font="serif", color="#a8a29e", size="0.6rem"),
    ),
)

DEFAULT_TEMPLATE = TEMPLATES[0]

TEMPLATE_CATEGORIES: tuple[dict, ...] = (
    {"id": TemplateCategory.CLASSIC.value, "label": "Classic", "icon": "📷"},
    {"id": TemplateCategory.MODERN.value, "label": "Modern", "icon": "✨"},
    {"id": TemplateCategory.PARTY.value, "label": "Party", "icon": "🎉"},
    {"id": TemplateCategory.MINIMAL.value, "label": "Minimal", "icon": "◻️"},
    {"id": TemplateCategory.VINTAGE.value, "label": "Vintage", "icon": "📜"},
)

# Keyed by the plain string value so str and TemplateId lookups agree
_TEMPLATES_BY_ID: dict[str, Template] = {t.id.value: t for t in TEMPLATES}


def _key(template_id: Union[TemplateId, str, None]) -> str:
    if isinstance(template_id, TemplateId):
        return template_id.value
    return str(template_id or "")


def get_template_by_id(template_id: Union[TemplateId, str, None]) -> Optional[Template]:
    """Exact lookup; None when the id is not in the catalog."""
    return _TEMPLATES_BY_ID.get(_key(template_id))


def resolve_template(template_id: Union[TemplateId, str, None]) -> Template:
    """
    Resolve a template id for rendering.

    Unknown ids are an expected input (stale clients, removed templates)
    and resolve to DEFAULT_TEMPLATE.

    Args:
        template_id: TemplateId, its string value, or None

    Returns:
        The matching template, or DEFAULT_TEMPLATE
    """
    template = get_template_by_id(template_id)
    if template is not None:
        return template

    logger.warning(
        f"[TEMPLATES] Unknown template '{template_id}', using '{DEFAULT_TEMPLATE.id.value}'"
    )
    return DEFAULT_TEMPLATE


def get_templates_by_category(category: Union[TemplateCategory, str]) -> list[Template]:
    """Get all templates in a category, in catalog order."""
    key = category.value if isinstance(category, TemplateCategory) else str(category)
    return [t for t in TEMPLATES if t.category.value == key]
