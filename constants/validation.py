"""
Validation Constants

Limits and defaults used when validating forms and normalizing stored records.
"""

# Loss percentage bounds (share of purchased quantity lost to trim/waste)
MIN_LOSS_PCT = 0
MAX_LOSS_PCT = 100

# Name given to the section created for recipes that had no valid sections
MAIN_SECTION_NAME = 'Main composition'

# Category given to ingredients created while importing recipe text
IMPORT_CATEGORY = 'PDF import'

# Recipe name used when pasted text has no usable title line
DEFAULT_IMPORTED_RECIPE_NAME = 'Recipe from PDF'

# Maximum field lengths
MAX_LENGTHS = {
    'ingredient_name': 200,
    'recipe_name': 200,
    'section_name': 200,
    'category': 50,
    'notes': 50000,
}

# Settings document
SETTINGS_ID = 'settings'
VALID_THEMES = {'light', 'dark'}
LEGACY_CURRENCIES = {'', 'USD'}
DEFAULT_PIN = '1234'
