"""
Smoke tests for the record store app.
Run with: python tests/smoke.py
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

def test_app_imports():
    """Verify app can be imported without errors."""
    from app import create_app, init_db, get_store
    assert callable(create_app)
    assert callable(init_db)
    assert callable(get_store)
    print("OK: App imports successfully")

def test_models_import():
    """Verify models can be imported."""
    from models import db, COLLECTIONS, StoreMeta, Ingredient, Recipe, RecipeSection, RecipeItem
    assert db is not None
    assert set(COLLECTIONS) == {'customers', 'orders', 'ingredients', 'recipes', 'settings'}
    assert StoreMeta.__tablename__ == 'store_meta'
    print("OK: Models import successfully")

def test_constants_import():
    """Verify constants can be imported."""
    from constants import BASE_UNITS, UNIT_LABELS, LEGACY_UNIT_MAPPINGS
    assert BASE_UNITS == ('g', 'ml', 'pcs')
    assert UNIT_LABELS['pcs'] == 'шт'
    assert LEGACY_UNIT_MAPPINGS['мл'] == 'ml'
    print("OK: Constants import successfully")

def test_schema_version_unchanged():
    """Verify the schema version and migration chain line up."""
    from services.migration import MIGRATIONS, CURRENT_SCHEMA_VERSION, UNVERSIONED

    # Steps must stay contiguous from the unversioned store
    assert [m.version for m in MIGRATIONS] == list(range(UNVERSIONED + 1, CURRENT_SCHEMA_VERSION + 1))
    print("OK: Schema versions unchanged")

def test_store_opens():
    """Verify a fresh database opens at the current schema and costs the demo recipe."""
    from app import create_app, init_db, get_store
    from services.migration import CURRENT_SCHEMA_VERSION

    app = create_app('testing')
    assert init_db(app) == CURRENT_SCHEMA_VERSION
    with app.app_context():
        snapshot = get_store().seed_demo()
        costs = get_store().costs_for_recipe(snapshot.recipes[0].id)
        assert costs.recipe_total_cost > 0
        print(f"OK: Store opens, demo recipe costs {costs.recipe_total_cost:.2f}")

if __name__ == '__main__':
    print("Running smoke tests...\n")

    tests = [
        test_app_imports,
        test_models_import,
        test_constants_import,
        test_schema_version_unchanged,
        test_store_opens,
    ]

    failed = 0
    for test in tests:
        try:
            test()
        except Exception as e:
            print(f"FAIL: {test.__name__} - {e}")
            failed += 1

    print(f"\n{'='*40}")
    if failed:
        print(f"FAILED: {failed}/{len(tests)} tests")
        sys.exit(1)
    else:
        print(f"PASSED: {len(tests)}/{len(tests)} tests")
        sys.exit(0)
