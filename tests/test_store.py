"""
Tests for RecordStore: opening/migrating, CRUD, reference checks and the
application-level fixes applied by load_all().
"""

from dataclasses import replace

import pytest

from models import Ingredient, RecipeItem, RecipeSection, Recipe
from services import (
    CURRENT_SCHEMA_VERSION,
    RecordInUseError,
    RecordNotFound,
    ValidationError,
    suggest_order_price,
)


def make_recipe(ingredient_id, recipe_id='', amount=300):
    return Recipe(id=recipe_id, name='Honey cake', sections=[
        RecipeSection(id='sec_1', name='Layers', output_amount=1000, output_unit='g', items=[
            RecipeItem(ingredient_id=ingredient_id, amount=amount, unit='g'),
        ]),
    ])


class TestOpen:

    def test_open_migrates_and_creates_settings(self, store, put_raw, raw_docs):
        put_raw('ingredients', 'ing_1', {'id': 'ing_1', 'name': 'Honey', 'unit': 'г', 'pricePerUnit': 0.9})
        put_raw('recipes', 'rec_1', {'id': 'rec_1', 'name': 'Honey cake',
                                     'ingredients': [{'ingredientId': 'ing_1', 'qty': 200}],
                                     'yieldKg': 1})

        assert store.open() == CURRENT_SCHEMA_VERSION
        assert store.schema_version() == CURRENT_SCHEMA_VERSION

        recipe = store.get_recipe('rec_1')
        assert recipe.sections[0].name == 'Main composition'
        costs = store.costs_for_recipe('rec_1')
        assert costs.recipe_total_cost == pytest.approx(180)
        assert costs.cost_per_yield_unit == pytest.approx(0.18)

        assert raw_docs('settings')['settings']['currency'] == 'RUB'

    def test_open_twice_is_harmless(self, store):
        store.open()
        assert store.open() == CURRENT_SCHEMA_VERSION

    def test_open_without_migrating(self, app, session, put_raw, raw_docs):
        from services import RecordStore
        put_raw('ingredients', 'ing_1', {'id': 'ing_1', 'unit': 'шт'})
        store = RecordStore(session, {'MIGRATE_ON_OPEN': False})
        assert store.open() == 1
        assert raw_docs('ingredients')['ing_1'] == {'id': 'ing_1', 'unit': 'шт'}

    def test_unmigrated_recipe_entries_are_skipped(self, app, session, put_raw):
        from services import RecordStore
        put_raw('recipes', 'rec_1', {'id': 'rec_1', 'name': 'Cake', 'sections': [
            'Sponge',
            {'id': 'sec_1', 'name': 'Cream', 'items': [None, {'ingredientId': 'ing_1', 'amount': 5}]},
        ]})
        store = RecordStore(session, {'MIGRATE_ON_OPEN': False})

        recipe = store.list_recipes()[0]
        assert [section.name for section in recipe.sections] == ['Cream']
        assert [item.ingredient_id for item in recipe.sections[0].items] == ['ing_1']


class TestIngredientsAndRecipes:

    def test_save_and_read_ingredient(self, store):
        saved = store.save_ingredient(Ingredient(id='', name='Sugar', pack_size=1000, pack_price=95))
        assert saved.id
        assert saved.created_at and saved.updated_at

        loaded = store.get_ingredient(saved.id)
        assert loaded == saved
        assert store.list_ingredients() == [saved]

    def test_update_keeps_created_at(self, store):
        saved = store.save_ingredient(Ingredient(id='ing_1', name='Sugar', created_at='2024-01-01T00:00:00.000Z'))
        updated = store.save_ingredient(replace(saved, pack_price=120))
        assert updated.created_at == '2024-01-01T00:00:00.000Z'
        assert store.get_ingredient('ing_1').pack_price == 120

    def test_missing_records(self, store):
        with pytest.raises(RecordNotFound):
            store.get_ingredient('nope')
        with pytest.raises(RecordNotFound):
            store.get_recipe('nope')
        with pytest.raises(RecordNotFound):
            store.delete_ingredient('nope')
        with pytest.raises(RecordNotFound):
            store.costs_for_recipe('nope')

    def test_ingredient_used_by_recipe_cannot_be_deleted(self, store):
        flour = store.save_ingredient(Ingredient(id='ing_flour', name='Flour'))
        recipe = store.save_recipe(make_recipe(flour.id))

        assert store.ingredient_in_use(flour.id)
        with pytest.raises(RecordInUseError) as excinfo:
            store.delete_ingredient(flour.id)
        assert excinfo.value.referenced_by == [recipe.id]

        store.delete_recipe(recipe.id)
        store.delete_ingredient(flour.id)
        assert store.list_ingredients() == []

    def test_recipe_used_by_order_cannot_be_deleted(self, store):
        recipe = store.save_recipe(make_recipe('ing_1'))
        order = store.save_order({'customerName': 'Anna', 'recipeId': recipe.id})

        assert store.recipe_in_use(recipe.id)
        with pytest.raises(RecordInUseError) as excinfo:
            store.delete_recipe(recipe.id)
        assert excinfo.value.referenced_by == [order['id']]

        store.delete_order(order['id'])
        assert not store.recipe_in_use(recipe.id)
        store.delete_recipe(recipe.id)
        assert store.list_recipes() == []

    def test_recipe_round_trip(self, store):
        recipe = store.save_recipe(make_recipe('ing_1', recipe_id='rec_1'))
        assert store.get_recipe('rec_1') == recipe


class TestDocuments:

    def test_orders_get_numbers(self, store):
        first = store.save_order({'customerName': 'Anna'})
        second = store.save_order({'customerName': 'Boris'})
        assert first['orderNo'] == 'ORD-0001'
        assert second['orderNo'] == 'ORD-0002'
        assert first['id'].startswith('ord_')

    def test_load_all_backfills_secondary_contact(self, store, put_raw, raw_docs):
        put_raw('customers', 'cust_1', {'id': 'cust_1', 'name': 'Anna', 'email': 'anna@example.com'})
        put_raw('customers', 'cust_2', {'id': 'cust_2', 'name': 'Boris', 'secondaryContact': '@boris',
                                        'email': 'boris@example.com'})

        snapshot = store.load_all()
        contacts = {customer['id']: customer['secondaryContact'] for customer in snapshot.customers}
        assert contacts == {'cust_1': 'anna@example.com', 'cust_2': '@boris'}
        assert raw_docs('customers')['cust_1']['secondaryContact'] == 'anna@example.com'

    @pytest.mark.parametrize('stored, expected', [
        ({'currency': 'USD'}, 'RUB'),
        ({'currency': ''}, 'RUB'),
        ({}, 'RUB'),
        ({'currency': 'EUR'}, 'EUR'),
        ({'currency': 'USD', 'currencyMigrated': True}, 'USD'),
    ])
    def test_currency_migration(self, store, put_raw, stored, expected):
        put_raw('settings', 'settings', dict(stored, id='settings', businessName='Sweet'))
        settings = store.load_all().settings
        assert settings['currency'] == expected
        assert settings['currencyMigrated'] is True
        assert settings['businessName'] == 'Sweet'

    def test_save_settings(self, store):
        store.save_settings({'businessName': 'Sweet', 'currency': 'EUR', 'currencyMigrated': True})
        assert store.get_settings()['businessName'] == 'Sweet'

    def test_save_settings_rejects_unknown_theme(self, store):
        with pytest.raises(ValidationError):
            store.save_settings({'theme': 'neon'})


class TestDemoData:

    def test_seed_demo_and_clear(self, store):
        store.open()
        snapshot = store.seed_demo()
        assert len(snapshot.ingredients) == 4
        assert len(snapshot.recipes) == 1
        assert len(snapshot.orders) == 1

        recipe = snapshot.recipes[0]
        assert store.recipe_in_use(recipe.id)
        costs = store.costs_for_recipe(recipe.id)
        # sponge 44 + 425 + 72, cream 456 * 400/600
        assert costs.recipe_total_cost == pytest.approx(845)
        assert snapshot.orders[0]['price']['total'] == suggest_order_price(
            recipe, snapshot.ingredients, '2 кг')

        store.clear_all()
        snapshot = store.load_all()
        assert snapshot.recipes == [] and snapshot.ingredients == [] and snapshot.orders == []
        assert snapshot.settings['id'] == 'settings'
