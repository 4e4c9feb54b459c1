"""
Tests for option autocomplete and option value collection.
"""

from configurator.suggestions import (
    COMMON_COLORS,
    SUGGESTION_LIMIT,
    collect_option_values,
    filter_suggestions,
)


class TestFilterSuggestions:
    """Tests for combobox entry filtering."""

    def test_blank_input_returns_nothing(self):
        assert filter_suggestions("", ["Red"], COMMON_COLORS) == []
        assert filter_suggestions("   ", ["Red"], COMMON_COLORS) == []

    def test_existing_first_then_new_entry(self):
        """Substring matches on existing values come first; no matching suggestion means only the add entry follows."""
        out = filter_suggestions("re", ["Red", "Green"], ["Red", "Maroon"], "color")

        assert out == [
            {"type": "existing", "value": "Red", "label": "Red"},
            {"type": "existing", "value": "Green", "label": "Green"},
            {"type": "new", "value": "re", "label": 'Add "re" as new color'},
        ]

    def test_suggestions_already_existing_are_not_repeated(self):
        out = filter_suggestions("bl", ["Blue"], ["Blue", "Black"])

        assert [(e["type"], e["value"]) for e in out] == [
            ("existing", "Blue"),
            ("suggestion", "Black"),
            ("new", "bl"),
        ]

    def test_exact_existing_match_suppresses_new_entry(self):
        """Typing an existing value neither lists it nor offers to add it."""
        out = filter_suggestions("RED", ["Red", "Dark Red"], [])

        assert out == [{"type": "existing", "value": "Dark Red", "label": "Dark Red"}]

    def test_exact_suggestion_match_still_offers_new(self):
        """A suggestion equal to the input is omitted but can still be added."""
        out = filter_suggestions("navy", [], ["Navy"], "color")

        assert out == [{"type": "new", "value": "navy", "label": 'Add "navy" as new color'}]

    def test_matches_capped_but_new_entry_kept(self):
        existing = [f"Shade {i}" for i in range(20)]

        out = filter_suggestions("shade", existing, [])

        assert len(out) == SUGGESTION_LIMIT + 1
        assert out[-1]["type"] == "new"
        assert all(e["type"] == "existing" for e in out[:-1])


class TestCollectOptionValues:
    """Tests for gathering option values across products."""

    def test_buckets_sorted_and_unique(self):
        products = [
            {"options": [
                {"name": "Color", "values": ["Red", "Blue"]},
                {"name": "Size", "values": ["M"]},
            ]},
            {"options": [
                {"name": "color", "values": ["Blue", " Navy "]},
                {"name": "Decorations", "values": ["DTG"]},
                {"name": "Material", "values": ["Cotton"]},
            ]},
        ]

        assert collect_option_values(products) == {
            "existing_colors": ["Blue", "Navy", "Red"],
            "existing_sizes": ["M"],
            "existing_decorations": ["DTG"],
        }

    def test_no_products(self):
        assert collect_option_values([]) == {
            "existing_colors": [],
            "existing_sizes": [],
            "existing_decorations": [],
        }
