"""
Record Store Service

RecordStore owns the stored collections for one database session. Create one
per session (it holds no global state), call open() once, then read and write
through it. Ingredients and recipes come back as canonical entities;
customers, orders and settings stay plain documents owned by the
application.
"""

import logging
from collections import namedtuple
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import replace

from sqlalchemy.exc import SQLAlchemyError

from config import Config
from constants import GRAM, PIECE, SETTINGS_ID, VALID_THEMES, LEGACY_CURRENCIES, DEFAULT_PIN
from models import COLLECTIONS, Ingredient, RecipeItem, RecipeSection, Recipe
from utils import create_id, create_order_number, new_uuid, now_iso
from .cost import recipe_costs, suggest_order_price
from .exceptions import StoreError, RecordNotFound, RecordInUseError, ValidationError
from .migration import run_migrations, get_schema_version

logger = logging.getLogger(__name__)

StoreSnapshot = namedtuple(
    'StoreSnapshot',
    ['customers', 'orders', 'ingredients', 'recipes', 'settings'],
)

# Collections cleared by clear_all()/seed_demo(); settings survive
BUSINESS_COLLECTIONS = ('customers', 'orders', 'ingredients', 'recipes')


class RecordStore:
    """Repository over the customers/orders/ingredients/recipes/settings collections."""

    def __init__(self, session, config=None):
        self.session = session
        config = config or {}
        self.migrate_on_open = config.get('MIGRATE_ON_OPEN', Config.MIGRATE_ON_OPEN)
        self.default_currency = config.get('DEFAULT_CURRENCY', Config.DEFAULT_CURRENCY)
        self.default_business_name = config.get('DEFAULT_BUSINESS_NAME', Config.DEFAULT_BUSINESS_NAME)
        self.default_day_capacity = config.get('DEFAULT_DAY_CAPACITY', Config.DEFAULT_DAY_CAPACITY)

    # ============================================
    # LOW-LEVEL ACCESS
    # ============================================

    @contextmanager
    def _transaction(self):
        """Commit on success; roll back and raise StoreError on database failure."""
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store write failed")
            raise StoreError('Store write failed') from exc

    def _documents(self, collection):
        model = COLLECTIONS[collection]
        try:
            rows = self.session.query(model).order_by(model.id).all()
        except SQLAlchemyError as exc:
            logger.exception("Unable to read %s", collection)
            raise StoreError(f"Unable to read {collection}") from exc
        documents = []
        for row in rows:
            data = dict(row.data) if isinstance(row.data, Mapping) else {}
            data.setdefault('id', row.id)
            documents.append(data)
        return documents

    def _document(self, collection, record_id):
        try:
            row = self.session.get(COLLECTIONS[collection], record_id)
        except SQLAlchemyError as exc:
            logger.exception("Unable to read %s/%s", collection, record_id)
            raise StoreError(f"Unable to read {collection}") from exc
        if row is None:
            return None
        data = dict(row.data) if isinstance(row.data, Mapping) else {}
        data.setdefault('id', row.id)
        return data

    def _put(self, collection, document):
        """Insert or replace a document (last write wins)."""
        model = COLLECTIONS[collection]
        row = self.session.get(model, document['id'])
        if row is None:
            self.session.add(model(id=document['id'], data=document))
        else:
            row.data = document

    def _delete(self, collection, record_id):
        row = self.session.get(COLLECTIONS[collection], record_id)
        if row is None:
            raise RecordNotFound(collection, record_id)
        self.session.delete(row)

    # ============================================
    # LIFECYCLE
    # ============================================

    def open(self):
        """Migrate the store to the current schema and make sure settings exist."""
        version = run_migrations(self.session) if self.migrate_on_open else self.schema_version()
        self.get_settings()
        return version

    def schema_version(self):
        try:
            return get_schema_version(self.session)
        except SQLAlchemyError as exc:
            raise StoreError('Unable to read the store schema version') from exc

    def load_all(self):
        """
        Snapshot of every collection.

        Customers with an email but no secondary contact get the email
        copied over, and the settings document is created or has its
        currency migrated as needed. Those fixes are written back.
        """
        customers = self._documents('customers')
        backfilled = []
        for customer in customers:
            if not customer.get('secondaryContact') and customer.get('email'):
                customer['secondaryContact'] = customer['email']
                backfilled.append(customer)
        if backfilled:
            with self._transaction():
                for customer in backfilled:
                    self._put('customers', customer)
            logger.info("Copied email to secondary contact for %d customer(s)", len(backfilled))

        return StoreSnapshot(
            customers=customers,
            orders=self.list_orders(),
            ingredients=self.list_ingredients(),
            recipes=self.list_recipes(),
            settings=self.get_settings(),
        )

    def clear_all(self):
        """Remove all business records. Settings are kept."""
        with self._transaction():
            for collection in BUSINESS_COLLECTIONS:
                self.session.query(COLLECTIONS[collection]).delete()
        logger.info("Cleared all records")

    # ============================================
    # INGREDIENTS
    # ============================================

    def list_ingredients(self):
        return [Ingredient.from_dict(doc) for doc in self._documents('ingredients')]

    def get_ingredient(self, ingredient_id):
        doc = self._document('ingredients', ingredient_id)
        if doc is None:
            raise RecordNotFound('ingredients', ingredient_id)
        return Ingredient.from_dict(doc)

    def save_ingredient(self, ingredient):
        """Create or update an ingredient; stamps createdAt/updatedAt."""
        now = now_iso()
        saved = replace(
            ingredient,
            id=ingredient.id or new_uuid(),
            created_at=ingredient.created_at or now,
            updated_at=now,
        )
        with self._transaction():
            self._put('ingredients', saved.to_dict())
        return saved

    def recipes_using_ingredient(self, ingredient_id):
        return [recipe.id for recipe in self.list_recipes() if ingredient_id in recipe.ingredient_ids()]

    def ingredient_in_use(self, ingredient_id):
        return bool(self.recipes_using_ingredient(ingredient_id))

    def delete_ingredient(self, ingredient_id):
        """Delete an ingredient unless a recipe still uses it."""
        users = self.recipes_using_ingredient(ingredient_id)
        if users:
            raise RecordInUseError('ingredients', ingredient_id, users)
        with self._transaction():
            self._delete('ingredients', ingredient_id)

    # ============================================
    # RECIPES
    # ============================================

    def list_recipes(self):
        return [Recipe.from_dict(doc) for doc in self._documents('recipes')]

    def get_recipe(self, recipe_id):
        doc = self._document('recipes', recipe_id)
        if doc is None:
            raise RecordNotFound('recipes', recipe_id)
        return Recipe.from_dict(doc)

    def save_recipe(self, recipe):
        """Create or update a recipe; stamps createdAt/updatedAt."""
        now = now_iso()
        saved = replace(
            recipe,
            id=recipe.id or new_uuid(),
            created_at=recipe.created_at or now,
            updated_at=now,
        )
        with self._transaction():
            self._put('recipes', saved.to_dict())
        return saved

    def orders_using_recipe(self, recipe_id):
        return [order['id'] for order in self.list_orders() if order.get('recipeId') == recipe_id]

    def recipe_in_use(self, recipe_id):
        return bool(self.orders_using_recipe(recipe_id))

    def delete_recipe(self, recipe_id):
        """Delete a recipe unless an order refers to it."""
        users = self.orders_using_recipe(recipe_id)
        if users:
            raise RecordInUseError('recipes', recipe_id, users)
        with self._transaction():
            self._delete('recipes', recipe_id)

    def costs_for_recipe(self, recipe_id):
        """recipe_costs() for a stored recipe against the current ingredient list."""
        recipes = self.list_recipes()
        for recipe in recipes:
            if recipe.id == recipe_id:
                return recipe_costs(recipe, self.list_ingredients(), recipes)
        raise RecordNotFound('recipes', recipe_id)

    # ============================================
    # CUSTOMERS & ORDERS
    # ============================================

    def list_customers(self):
        return self._documents('customers')

    def save_customer(self, customer):
        customer = dict(customer)
        customer.setdefault('id', create_id('cust'))
        customer.setdefault('createdAt', now_iso())
        with self._transaction():
            self._put('customers', customer)
        return customer

    def delete_customer(self, customer_id):
        with self._transaction():
            self._delete('customers', customer_id)

    def list_orders(self):
        return self._documents('orders')

    def next_order_number(self):
        return create_order_number(len(self.list_orders()))

    def save_order(self, order):
        order = dict(order)
        order.setdefault('id', create_id('ord'))
        if not order.get('orderNo'):
            order['orderNo'] = self.next_order_number()
        order.setdefault('createdAt', now_iso())
        with self._transaction():
            self._put('orders', order)
        return order

    def delete_order(self, order_id):
        with self._transaction():
            self._delete('orders', order_id)

    # ============================================
    # SETTINGS
    # ============================================

    def default_settings(self):
        return {
            'id': SETTINGS_ID,
            'businessName': self.default_business_name,
            'currency': self.default_currency,
            'currencyMigrated': True,
            'dayCapacityRules': self.default_day_capacity,
            'theme': 'light',
            'pin': DEFAULT_PIN,
        }

    def get_settings(self):
        """
        The settings document, created with defaults when missing.

        Settings saved before the currency migration that still say USD (or
        nothing) switch to the default currency once.
        """
        settings = self._document('settings', SETTINGS_ID)
        if settings is None:
            settings = self.default_settings()
        elif not settings.get('currencyMigrated'):
            if (settings.get('currency') or '') in LEGACY_CURRENCIES:
                settings['currency'] = self.default_currency
            settings['currencyMigrated'] = True
        else:
            return settings

        with self._transaction():
            self._put('settings', settings)
        return settings

    def save_settings(self, settings):
        settings = dict(settings, id=SETTINGS_ID)
        if settings.get('theme', 'light') not in VALID_THEMES:
            raise ValidationError({'theme': f"Theme must be one of {', '.join(sorted(VALID_THEMES))}."})
        with self._transaction():
            self._put('settings', settings)
        return settings

    # ============================================
    # DEMO DATA
    # ============================================

    def seed_demo(self):
        """Replace all business records with a small demo data set."""
        now = now_iso()
        flour = Ingredient(id=new_uuid(), name='Flour', category='Dry goods', base_unit=GRAM,
                           pack_size=1000, pack_price=110, created_at=now, updated_at=now)
        butter = Ingredient(id=new_uuid(), name='Butter 82%', category='Dairy', base_unit=GRAM,
                            pack_size=180, pack_price=250, loss_pct=2, created_at=now, updated_at=now)
        eggs = Ingredient(id=new_uuid(), name='Eggs', category='Dairy', base_unit=PIECE,
                          pack_size=10, pack_price=120, created_at=now, updated_at=now)
        cream = Ingredient(id=new_uuid(), name='Cream 33%', category='Dairy', base_unit=GRAM,
                           pack_size=500, pack_price=380, created_at=now, updated_at=now)
        ingredients = [flour, butter, eggs, cream]

        recipe = Recipe(
            id=new_uuid(),
            name='Vanilla sponge cake',
            category='Cakes',
            sections=[
                RecipeSection(id=create_id('sec'), name='Sponge', output_amount=1200, output_unit=GRAM, items=[
                    RecipeItem(ingredient_id=flour.id, amount=400, unit=GRAM),
                    RecipeItem(ingredient_id=butter.id, amount=300, unit=GRAM),
                    RecipeItem(ingredient_id=eggs.id, amount=6, unit=PIECE),
                ]),
                RecipeSection(id=create_id('sec'), name='Cream', output_amount=600, output_unit=GRAM,
                              usage_amount=400, items=[
                                  RecipeItem(ingredient_id=cream.id, amount=600, unit=GRAM),
                              ]),
            ],
            notes='Bake the sponge at 170C for 35 minutes.',
            created_at=now,
            updated_at=now,
        )

        customer = {
            'id': create_id('cust'),
            'name': 'Ekaterina',
            'phone': '+1 (555) 302-1988',
            'secondaryContact': '@ekaterina',
            'notes': 'Prefers less sweet cream',
            'tags': ['regular'],
            'createdAt': now,
        }
        total = suggest_order_price(recipe, ingredients, '2 кг') or 0
        order = {
            'id': create_id('ord'),
            'orderNo': create_order_number(0),
            'status': 'confirmed',
            'createdAt': now,
            'dueAt': now,
            'customerId': customer['id'],
            'customerName': customer['name'],
            'recipeId': recipe.id,
            'size': '2 кг',
            'items': [],
            'price': {'subtotal': total, 'discount': 0, 'delivery': 0, 'total': total},
            'payments': [],
        }

        with self._transaction():
            for collection in BUSINESS_COLLECTIONS:
                self.session.query(COLLECTIONS[collection]).delete()
            for ingredient in ingredients:
                self._put('ingredients', ingredient.to_dict())
            self._put('recipes', recipe.to_dict())
            self._put('customers', customer)
            self._put('orders', order)
        logger.info("Seeded demo data")
        return self.load_all()
