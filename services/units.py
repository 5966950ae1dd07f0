"""
Unit Service

Resolving stored or legacy unit values to base units.
"""

from constants import GRAM, BASE_UNITS, UNIT_LABELS, LEGACY_UNIT_MAPPINGS


def to_base_unit(value):
    """Return value if it is a valid base unit code, otherwise None."""
    if isinstance(value, str) and value in BASE_UNITS:
        return value
    return None


def unit_from_legacy(value, default=GRAM):
    """Map a legacy free-text unit ('мл', 'шт', ...) to a base unit."""
    if not isinstance(value, str):
        return default
    return LEGACY_UNIT_MAPPINGS.get(value.strip().lower(), default)


def resolve_base_unit(base_unit=None, legacy_unit=None, default=GRAM):
    """
    Pick the base unit for a record.

    An already-valid base unit wins; otherwise the legacy unit text is
    mapped; anything unrecognised falls back to default (grams).
    """
    return to_base_unit(base_unit) or unit_from_legacy(legacy_unit, default)


def get_unit_label(unit):
    """Display label for a base unit ('g' -> 'г')."""
    return UNIT_LABELS.get(unit, unit)
