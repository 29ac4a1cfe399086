"""
Image generators for photo strips.

- generators.filters: filter presets, preview/batch projections, calibration
- generators.templates: strip layout catalog
- generators.stickers: sticker model, asset resolvers, packs
- generators.strip: the strip compositor
- generators.animation: animated sequence assembler
"""
