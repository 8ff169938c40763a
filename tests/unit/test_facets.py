"""Unit tests for facet filtering and free-text matching."""

import json

import pytest

from smartplates.engine.facets import (
    FacetTables,
    apply_facet_filters,
    load_facet_tables,
    matches_category,
    matches_diet,
    matches_search_text,
    mentions_allergen,
)
from smartplates.models.models import Difficulty, QueryRequest, Recipe


@pytest.fixture
def tables():
    return FacetTables()


def make_recipe(title="Test Recipe", **fields) -> Recipe:
    return Recipe.model_validate({"title": title, **fields})


class TestMatchesCategory:
    """Test lenient category matching."""

    def test_recipe_without_dish_types_is_kept(self, tables):
        assert matches_category(make_recipe(), "dinner", tables)

    def test_synonym_matches(self, tables):
        recipe = make_recipe(dishTypes=["main course"])
        assert matches_category(recipe, "dinner", tables)
        assert matches_category(recipe, "lunch", tables)

    def test_substring_match_is_case_insensitive(self, tables):
        assert matches_category(make_recipe(dishTypes=["Morning Meal Special"]), "breakfast", tables)

    def test_unrelated_dish_type_excluded(self, tables):
        assert not matches_category(make_recipe(dishTypes=["dessert"]), "dinner", tables)

    def test_unknown_category_matches_itself(self, tables):
        assert matches_category(make_recipe(dishTypes=["salad"]), "salad", tables)


class TestMatchesDiet:
    """Test diet tag matching with description fallback."""

    def test_diet_tag_synonym(self, tables):
        recipe = make_recipe(diets=["lacto ovo vegetarian"])
        assert matches_diet(recipe, "vegetarian", tables)

    def test_paleo_maps_to_paleolithic(self, tables):
        assert matches_diet(make_recipe(diets=["paleolithic"]), "paleo", tables)

    def test_falls_back_to_description_keyword(self, tables):
        recipe = make_recipe(summary="A hearty <b>vegan</b> chili.")
        assert matches_diet(recipe, "vegan", tables)

    def test_no_tag_and_no_mention_excluded(self, tables):
        assert not matches_diet(make_recipe(diets=["gluten free"]), "vegan", tables)


class TestMentionsAllergen:
    """Test best-effort allergen exclusion."""

    def test_allergen_in_description(self, tables):
        assert mentions_allergen(make_recipe(description="Topped with crushed peanuts"), "peanut", tables)

    def test_allergen_in_ingredients(self, tables):
        recipe = make_recipe(extendedIngredients=[{"name": "whole milk"}])
        assert mentions_allergen(recipe, "dairy", tables)

    def test_pattern_table_covers_related_words(self, tables):
        assert mentions_allergen(make_recipe(description="Dusted with flour"), "gluten", tables)

    def test_egg_pattern_uses_word_boundaries(self, tables):
        assert not mentions_allergen(make_recipe(description="Roasted eggplant"), "egg", tables)
        assert mentions_allergen(make_recipe(description="Two fried eggs"), "egg", tables)

    def test_nuts_pattern_ignores_words_containing_nut(self, tables):
        """Ready times ("45 minutes") and words like nutmeg must not exclude a recipe."""
        recipe = make_recipe(
            "Tomato Soup",
            summary="Ready in roughly <b>45 minutes</b>. Finished with nutmeg and coconut cream.",
        )
        assert not mentions_allergen(recipe, "nuts", tables)

    def test_nuts_pattern_matches_nuts_and_tree_nuts(self, tables):
        assert mentions_allergen(make_recipe(description="Sprinkle with chopped nuts"), "nuts", tables)
        assert mentions_allergen(make_recipe(extendedIngredients=[{"name": "walnut halves"}]), "nuts", tables)

    def test_unknown_allergen_is_matched_literally(self, tables):
        assert mentions_allergen(make_recipe(description="Contains lupin (a+b)"), "lupin (a+b)", tables)

    def test_recipe_mentioning_nothing_is_treated_as_safe(self, tables):
        assert not mentions_allergen(make_recipe(), "peanut", tables)


class TestMatchesSearchText:
    """Test free-text matching."""

    def test_matches_title(self, tables):
        assert matches_search_text(make_recipe("Spaghetti Carbonara"), "carbonara", tables)

    def test_matches_description(self, tables):
        recipe = make_recipe("Weeknight Bowl", summary="Loaded with <i>chickpeas</i>")
        assert matches_search_text(recipe, "chickpea", tables)

    def test_matches_tags_and_ingredients(self, tables):
        assert matches_search_text(make_recipe(tags=["Comfort Food"]), "comfort", tables)
        assert matches_search_text(make_recipe(extendedIngredients=[{"name": "Basil"}]), "basil", tables)

    def test_corrects_known_typo(self, tables):
        assert matches_search_text(make_recipe("Chicken Curry"), "chiken", tables)

    def test_blank_text_matches_everything(self, tables):
        assert matches_search_text(make_recipe(), "   ", tables)

    def test_no_match(self, tables):
        assert not matches_search_text(make_recipe("Fruit Salad"), "pasta", tables)


class TestApplyFacetFilters:
    """Test combined facet filtering."""

    def test_no_facets_keeps_all_in_order(self):
        candidates = [make_recipe("A"), make_recipe("B"), make_recipe("C")]
        assert apply_facet_filters(candidates, QueryRequest()) == candidates

    def test_combines_all_facets(self):
        keep = make_recipe("Keep", id=1, dishTypes=["main course"], diets=["vegan"], readyInMinutes=10)
        wrong_category = make_recipe("Dessert", id=2, dishTypes=["dessert"], diets=["vegan"], readyInMinutes=10)
        wrong_diet = make_recipe("Beef", id=3, dishTypes=["main course"], readyInMinutes=10)
        allergen = make_recipe(
            "Satay", id=4, dishTypes=["main course"], diets=["vegan"], readyInMinutes=10,
            extendedIngredients=[{"name": "peanut butter"}],
        )
        too_slow = make_recipe("Roast", id=5, dishTypes=["main course"], diets=["vegan"], readyInMinutes=90)

        request = QueryRequest(category="dinner", diet="vegan", intolerance="peanut", difficulty="easy")
        result = apply_facet_filters([keep, wrong_category, wrong_diet, allergen, too_slow], request)

        assert result == [keep]

    def test_nuts_intolerance_keeps_recipes_that_only_mention_minutes(self):
        recipe = make_recipe("Tomato Soup", id=1, summary="Ready in roughly <b>45 minutes</b>.")
        assert apply_facet_filters([recipe], QueryRequest(intolerance="nuts")) == [recipe]

    def test_difficulty_filter_uses_default_time(self):
        untimed = make_recipe("Untimed")
        assert apply_facet_filters([untimed], QueryRequest(difficulty=Difficulty.MEDIUM)) == [untimed]
        assert apply_facet_filters([untimed], QueryRequest(difficulty=Difficulty.EASY)) == []


class TestFacetTables:
    """Test FacetTables helpers and loading overrides."""

    def test_upstream_category_translation(self, tables):
        assert tables.upstream_category("dinner") == "main course"
        assert tables.upstream_category("lunch") == "main course"
        assert tables.upstream_category("dessert") == "dessert"

    def test_correct_typo(self, tables):
        assert tables.correct_typo("tomatoe") == "tomato"
        assert tables.correct_typo("risotto") == "risotto"

    def test_load_without_path_returns_defaults(self):
        assert load_facet_tables(None) == FacetTables()

    def test_load_merges_overrides(self, tmp_path):
        path = tmp_path / "facets.json"
        path.write_text(
            json.dumps(
                {
                    "category_synonyms": {"Brunch": ["brunch", "breakfast"]},
                    "allergen_patterns": {"peanut": "peanut|groundnut"},
                }
            ),
            encoding="utf-8",
        )

        loaded = load_facet_tables(str(path))

        assert loaded.category_synonyms["brunch"] == ["brunch", "breakfast"]
        assert loaded.category_synonyms["dinner"] == FacetTables().category_synonyms["dinner"]
        assert loaded.allergen_patterns["peanut"] == "peanut|groundnut"

    def test_load_rejects_unknown_table(self, tmp_path):
        path = tmp_path / "facets.json"
        path.write_text(json.dumps({"cuisines": {}}), encoding="utf-8")

        with pytest.raises(ValueError, match="Unknown facet table"):
            load_facet_tables(str(path))

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "facets.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON object"):
            load_facet_tables(str(path))

    def test_load_rejects_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="Cannot load facet tables"):
            load_facet_tables(str(tmp_path / "missing.json"))
