"""
Unit Constants

Base units every ingredient and recipe quantity is stored in, plus the
legacy free-text spellings older records used for them.
"""

# Base units (persisted codes)
GRAM = 'g'
MILLILITER = 'ml'
PIECE = 'pcs'

BASE_UNITS = (GRAM, MILLILITER, PIECE)

# Display labels for base units
UNIT_LABELS = {
    GRAM: 'г',
    MILLILITER: 'мл',
    PIECE: 'шт',
}

# Legacy free-text unit field -> base unit (anything else falls back to GRAM)
LEGACY_UNIT_MAPPINGS = {
    'ml': MILLILITER,
    'мл': MILLILITER,
    'pcs': PIECE,
    'шт': PIECE,
}

# Unit words accepted when parsing pasted recipe text (lowercase input -> base unit)
TEXT_UNIT_MAPPINGS = {
    'г': GRAM, 'гр': GRAM, 'грамм': GRAM, 'грамма': GRAM, 'граммов': GRAM,
    'мл': MILLILITER,
    'шт': PIECE, 'штука': PIECE, 'штуки': PIECE, 'штук': PIECE,
}

# Weight conversions to G (legacy yieldKg, order sizes given in kg)
KG_TO_G = 1000
KG_WORDS = ('кг', 'kg')
