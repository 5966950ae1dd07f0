"""
Services Package

Store migration, costing and record-keeping logic.
"""

from .exceptions import (
    StoreError,
    RecordNotFound,
    RecordInUseError,
    ValidationError,
)

from .units import (
    to_base_unit,
    unit_from_legacy,
    resolve_base_unit,
    get_unit_label,
)

from .cost import (
    RecipeCosts,
    ingredient_unit_price,
    loss_factor,
    item_cost,
    section_base_cost,
    usage_ratio,
    section_effective_cost,
    yield_anchor,
    recipe_costs,
    with_row_costs,
    parse_order_size_value,
    suggest_order_price,
)

from .migration import (
    CURRENT_SCHEMA_VERSION,
    MIGRATIONS,
    migrate_ingredient,
    flatten_recipe_items,
    section_recipe,
    migrate_recipe,
    run_migrations,
    get_schema_version,
)

from .parsing import (
    ParsedRow,
    parse_recipe_text,
    detect_recipe_name,
)

from .matching import (
    find_ingredient_match,
    build_items_from_rows,
)

from .validation import (
    validate_ingredient_form,
    validate_recipe_form,
    add_item_to_section,
)

from .store import RecordStore, StoreSnapshot

__all__ = [
    # Exceptions
    'StoreError',
    'RecordNotFound',
    'RecordInUseError',
    'ValidationError',
    # Units
    'to_base_unit',
    'unit_from_legacy',
    'resolve_base_unit',
    'get_unit_label',
    # Cost
    'RecipeCosts',
    'ingredient_unit_price',
    'loss_factor',
    'item_cost',
    'section_base_cost',
    'usage_ratio',
    'section_effective_cost',
    'yield_anchor',
    'recipe_costs',
    'with_row_costs',
    'parse_order_size_value',
    'suggest_order_price',
    # Migration
    'CURRENT_SCHEMA_VERSION',
    'MIGRATIONS',
    'migrate_ingredient',
    'flatten_recipe_items',
    'section_recipe',
    'migrate_recipe',
    'run_migrations',
    'get_schema_version',
    # Parsing
    'ParsedRow',
    'parse_recipe_text',
    'detect_recipe_name',
    # Matching
    'find_ingredient_match',
    'build_items_from_rows',
    # Validation
    'validate_ingredient_form',
    'validate_recipe_form',
    'add_item_to_section',
    # Store
    'RecordStore',
    'StoreSnapshot',
]
