"""
Tests for recipe text import (parsing + ingredient matching) and form validation.
"""

import pytest

from models import Ingredient, RecipeSection
from services import (
    ValidationError,
    parse_recipe_text,
    detect_recipe_name,
    find_ingredient_match,
    build_items_from_rows,
    validate_ingredient_form,
    validate_recipe_form,
    add_item_to_section,
)
from services.parsing import ParsedRow

RECIPE_TEXT = """Бисквит ванильный
Мука пшеничная - 250 г
Молоко: 120,5 мл
Яйца 3 шт
Сахар 100 кг
Шаг 1: смешать
Масло 82,5% 200 грамм
"""


class TestParseRecipeText:

    def test_rows(self):
        rows = parse_recipe_text(RECIPE_TEXT)
        assert [(row.name, row.amount, row.unit) for row in rows] == [
            ('Мука пшеничная', 250, 'g'),
            ('Молоко', 120.5, 'ml'),
            ('Яйца', 3, 'pcs'),
            ('Масло 82,5%', 200, 'g'),
        ]
        assert rows[0].raw == 'Мука пшеничная - 250 г'

    def test_non_breaking_spaces_and_case(self):
        rows = parse_recipe_text('Сливки 33%\u00a0500\u00a0МЛ')
        assert [(row.name, row.amount, row.unit) for row in rows] == [('Сливки 33%', 500, 'ml')]

    def test_zero_amount_skipped(self):
        assert parse_recipe_text('Соль 0 г') == []
        assert parse_recipe_text('') == []

    def test_detect_recipe_name(self):
        assert detect_recipe_name(RECIPE_TEXT) == 'Бисквит ванильный'
        assert detect_recipe_name('Мука 250 г\nab') == 'Recipe from PDF'


class TestMatching:

    def setup_method(self):
        self.flour = Ingredient(id='ing_flour', name='Мука  Пшеничная', base_unit='g')
        self.milk = Ingredient(id='ing_milk', name='Молоко', base_unit='ml')

    def test_find_match_ignores_case_and_spacing(self):
        assert find_ingredient_match('мука пшеничная', [self.flour, self.milk]) is self.flour
        assert find_ingredient_match('Сахар', [self.flour]) is None
        assert find_ingredient_match('  ', [self.flour]) is None

    def test_build_items_creates_missing_ingredients(self):
        rows = parse_recipe_text(RECIPE_TEXT)
        items, created = build_items_from_rows(rows, [self.flour, self.milk], now='2026-01-01T00:00:00.000Z')

        assert [item.ingredient_id for item in items[:2]] == ['ing_flour', 'ing_milk']
        assert [ingredient.name for ingredient in created] == ['Яйца', 'Масло 82,5%']
        eggs = created[0]
        assert eggs.base_unit == 'pcs'
        assert eggs.category == 'PDF import'
        assert (eggs.pack_size, eggs.pack_price) == (1, 0)
        assert items[2].ingredient_id == eggs.id

    def test_repeated_new_name_reuses_created_ingredient(self):
        rows = [ParsedRow('Сахар 10 г', 'Сахар', 10, 'g'), ParsedRow('сахар 5 г', 'сахар', 5, 'g')]
        items, created = build_items_from_rows(rows, [])
        assert len(created) == 1
        assert items[0].ingredient_id == items[1].ingredient_id

    def test_unit_mismatch_raises(self):
        rows = [ParsedRow('Молоко 100 г', 'Молоко', 100, 'g')]
        with pytest.raises(ValidationError) as excinfo:
            build_items_from_rows(rows, [self.milk])
        assert 'items' in excinfo.value.errors


class TestIngredientForm:

    def test_valid(self):
        errors, parsed = validate_ingredient_form({
            'name': ' Butter ', 'category': 'Dairy', 'baseUnit': 'g',
            'packSize': '180', 'packPrice': '249,90', 'lossPct': '',
        })
        assert errors == {}
        assert parsed['name'] == 'Butter'
        assert parsed['pack_price'] == pytest.approx(249.9)
        assert parsed['loss_pct'] == 0
        assert Ingredient(id='ing_1', **parsed).pack_size == 180

    def test_invalid(self):
        errors, _ = validate_ingredient_form({
            'name': '  ', 'baseUnit': 'kg', 'packSize': '0', 'packPrice': '-1', 'lossPct': '120',
        })
        assert set(errors) == {'name', 'baseUnit', 'packSize', 'packPrice', 'lossPct'}

    def test_zero_price_allowed(self):
        errors, _ = validate_ingredient_form({'name': 'Water', 'baseUnit': 'ml', 'packSize': '1', 'packPrice': '0'})
        assert errors == {}


class TestRecipeForm:

    ingredients = [Ingredient(id='ing_flour', name='Flour', base_unit='g'),
                   Ingredient(id='ing_milk', name='Milk', base_unit='ml')]

    def test_valid(self):
        errors, parsed = validate_recipe_form({
            'name': 'Pancakes',
            'sections': [{'name': 'Batter', 'outputAmount': '900', 'outputUnit': 'g',
                          'items': [{'ingredientId': 'ing_flour', 'amount': '250', 'unit': 'g'},
                                    {'ingredientId': 'ing_milk', 'amount': '500', 'unit': 'ml'}]}],
        }, self.ingredients)
        assert errors == {}
        section = parsed['sections'][0]
        assert section.id.startswith('sec_')
        assert section.output_amount == 900
        assert section.usage_amount is None

    def test_errors(self):
        errors, _ = validate_recipe_form({
            'name': '',
            'sections': [
                {'name': '', 'items': []},
                {'name': 'Cream', 'outputAmount': '0', 'usageAmount': '-5',
                 'items': [{'ingredientId': 'ing_milk', 'amount': '100', 'unit': 'g'}]},
            ],
        }, self.ingredients)
        assert set(errors) == {'name', 'sections', 'outputAmount', 'usageAmount', 'mismatch'}

    def test_requires_items(self):
        errors, _ = validate_recipe_form({'name': 'Empty', 'sections': [{'name': 'Main'}]}, self.ingredients)
        assert 'items' in errors


class TestAddItemToSection:

    def test_merges_same_ingredient(self):
        flour = Ingredient(id='ing_flour', name='Flour', base_unit='g')
        section = RecipeSection(id='sec_1', name='Dough')
        section = add_item_to_section(section, flour, '100.1')
        section = add_item_to_section(section, flour, 0.2)
        assert len(section.items) == 1
        assert section.items[0].amount == 100.3
        assert section.items[0].unit == 'g'

    def test_rejects_bad_input(self):
        section = RecipeSection(id='sec_1', name='Dough')
        with pytest.raises(ValidationError):
            add_item_to_section(section, None, 10)
        with pytest.raises(ValidationError):
            add_item_to_section(section, Ingredient(id='i', name='i'), '0')
