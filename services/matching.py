"""
Ingredient Matching Service

Functions for matching parsed recipe rows to known ingredients.
"""

from constants import IMPORT_CATEGORY
from models import Ingredient, RecipeItem
from utils import new_uuid, now_iso
from .exceptions import ValidationError
from .units import get_unit_label


def normalize_ingredient_name(name):
    """Normalize ingredient name for matching."""
    return ' '.join((name or '').lower().split())


def find_ingredient_match(name, ingredients):
    """Find an ingredient whose name equals name, ignoring case and spacing."""
    normalized = normalize_ingredient_name(name)
    if not normalized:
        return None
    for ingredient in ingredients:
        if normalize_ingredient_name(ingredient.name) == normalized:
            return ingredient
    return None


def build_items_from_rows(rows, ingredients, now=None):
    """
    Turn parsed rows into recipe items.

    Rows naming an unknown ingredient create one (unpriced, in the row's
    unit). Returns (items, new_ingredients). Raises ValidationError when a
    row's unit differs from the matching ingredient's base unit.
    """
    now = now or now_iso()
    known = list(ingredients)
    items = []
    new_ingredients = []

    for row in rows:
        ingredient = find_ingredient_match(row.name, known)
        if ingredient is None:
            ingredient = Ingredient(
                id=new_uuid(),
                name=row.name,
                category=IMPORT_CATEGORY,
                base_unit=row.unit,
                pack_size=1,
                pack_price=0,
                loss_pct=0,
                created_at=now,
                updated_at=now,
            )
            known.append(ingredient)
            new_ingredients.append(ingredient)

        if ingredient.base_unit != row.unit:
            raise ValidationError({
                'items': f"Ingredient '{row.name}' is measured in "
                         f"{get_unit_label(ingredient.base_unit)}, not {get_unit_label(row.unit)}",
            })
        items.append(RecipeItem(ingredient_id=ingredient.id, amount=row.amount, unit=row.unit))

    return items, new_ingredients
