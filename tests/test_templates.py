"""
Tests for the template catalog.

These tests verify:
- Catalog size, ordering and default
- Lookup and default fallback
- Category filtering
- Serialized shape for the frontend
"""

import logging

import pytest

from generators.templates import (
    DEFAULT_TEMPLATE,
    TEMPLATE_CATEGORIES,
    TEMPLATES,
    TemplateCategory,
    TemplateId,
    get_template_by_id,
    get_templates_by_category,
    resolve_template,
)


class TestTemplateCatalog:
    """Test suite for catalog contents."""

    def test_catalog_size(self):
        assert len(TEMPLATES) == 23
        assert {t.id for t in TEMPLATES} == set(TemplateId)

    def test_default_is_first(self):
        assert DEFAULT_TEMPLATE is TEMPLATES[0]
        assert DEFAULT_TEMPLATE.id is TemplateId.CLASSIC_2X2

    @pytest.mark.parametrize("template", TEMPLATES, ids=lambda t: t.id.value)
    def test_layout_consistent(self, template):
        """Test that every layout has exactly cols x rows slots and a positive aspect."""
        layout = template.layout
        assert layout.count == layout.cols * layout.rows
        assert layout.aspect > 0

    def test_aspect_parsing(self):
        assert get_template_by_id("classic-2x2").layout.aspect == pytest.approx(2 / 3)
        assert get_template_by_id("classic-1x4").layout.aspect == pytest.approx(0.25)

    @pytest.mark.parametrize("category,expected", [
        (TemplateCategory.CLASSIC, 4),
        (TemplateCategory.MODERN, 5),
        (TemplateCategory.PARTY, 5),
        (TemplateCategory.MINIMAL, 4),
        (TemplateCategory.VINTAGE, 5),
    ])
    def test_category_counts(self, category, expected):
        assert len(get_templates_by_category(category)) == expected
        assert len(get_templates_by_category(category.value)) == expected

    def test_categories_listed_in_order(self):
        assert [c["id"] for c in TEMPLATE_CATEGORIES] == [c.value for c in TemplateCategory]

    def test_unknown_category_is_empty(self):
        assert get_templates_by_category("space") == []


class TestTemplateLookup:
    """Test suite for lookup and fallback."""

    def test_lookup_by_string_and_enum(self):
        assert get_template_by_id("party-neon") is get_template_by_id(TemplateId.PARTY_NEON)

    def test_unknown_lookup_returns_none(self):
        assert get_template_by_id("does-not-exist") is None
        assert get_template_by_id(None) is None

    def test_resolve_unknown_falls_back(self, caplog):
        """Test that unknown ids resolve to the default and log a warning."""
        with caplog.at_level(logging.WARNING, logger="generators.templates"):
            template = resolve_template("does-not-exist")

        assert template is DEFAULT_TEMPLATE
        assert any("[TEMPLATES]" in r.getMessage() for r in caplog.records)

    def test_resolve_none_is_default(self):
        assert resolve_template(None) is DEFAULT_TEMPLATE

    def test_resolve_known(self):
        assert resolve_template("vintage-film").id is TemplateId.VINTAGE_FILM


class TestTemplateSerialization:
    """Test suite for to_dict()."""

    def test_camel_case_keys(self):
        data = get_template_by_id("party-birthday").to_dict()
        assert data["id"] == "party-birthday"
        assert data["category"] == "party"
        assert data["layout"] == {"cols": 2, "rows": 2, "count": 4, "aspectRatio": "2/3"}
        assert data["style"]["backgroundColor"] == "#fef3c7"
        assert data["style"]["borderWidth"] == 4
        assert data["style"]["photoRadius"] == 20
        assert data["footer"]["text"] == "🎂 HAPPY BIRTHDAY 🎂"

    def test_optional_style_keys_omitted(self):
        data = get_template_by_id("classic-2x2").to_dict()
        assert "borderColor" not in data["style"]
        assert "photoRadius" not in data["style"]
        assert "size" not in data["footer"]

    def test_footer_size_included_when_set(self):
        assert get_template_by_id("vintage-faded").to_dict()["footer"]["size"] == "0.6rem"
