"""
Constants Package

Units, limits and defaults shared by the store and the services.
"""

from .units import (
    GRAM,
    MILLILITER,
    PIECE,
    BASE_UNITS,
    UNIT_LABELS,
    LEGACY_UNIT_MAPPINGS,
    TEXT_UNIT_MAPPINGS,
    KG_TO_G,
    KG_WORDS,
)

from .validation import (
    MIN_LOSS_PCT,
    MAX_LOSS_PCT,
    MAIN_SECTION_NAME,
    IMPORT_CATEGORY,
    DEFAULT_IMPORTED_RECIPE_NAME,
    MAX_LENGTHS,
    SETTINGS_ID,
    VALID_THEMES,
    LEGACY_CURRENCIES,
    DEFAULT_PIN,
)
