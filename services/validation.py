"""
Validation Service

Checks ingredient and recipe form input before it is saved. Each validator
returns (errors, parsed): errors maps field name -> message and is empty
when the input is valid; parsed holds the cleaned values.
"""

from dataclasses import replace

from constants import GRAM, BASE_UNITS, MAX_LENGTHS, MIN_LOSS_PCT, MAX_LOSS_PCT
from models import RecipeItem, RecipeSection
from utils import safe_float, create_id
from .exceptions import ValidationError
from .units import to_base_unit


def _clean_text(value, max_length):
    if value is None:
        return ''
    return str(value).strip()[:max_length]


def _number(value):
    """Parse form input to a float, None when blank or unreadable."""
    return safe_float(value, default=None)


def validate_ingredient_form(values):
    """Validate ingredient form input (name, category, baseUnit, packSize, packPrice, lossPct)."""
    errors = {}
    name = _clean_text(values.get('name'), MAX_LENGTHS['ingredient_name'])
    if not name:
        errors['name'] = 'Enter an ingredient name.'

    base_unit = to_base_unit(values.get('baseUnit'))
    if base_unit is None:
        errors['baseUnit'] = f"Unit must be one of {', '.join(BASE_UNITS)}."

    pack_size = _number(values.get('packSize'))
    if pack_size is None or pack_size <= 0:
        errors['packSize'] = 'Pack size must be greater than 0.'

    pack_price = _number(values.get('packPrice'))
    if pack_price is None or pack_price < 0:
        errors['packPrice'] = 'Pack price must be 0 or more.'

    loss_raw = values.get('lossPct')
    loss_pct = 0.0 if loss_raw in (None, '') else _number(loss_raw)
    if loss_pct is None or not MIN_LOSS_PCT <= loss_pct <= MAX_LOSS_PCT:
        errors['lossPct'] = 'Loss must be between 0 and 100%.'

    parsed = {
        'name': name,
        'category': _clean_text(values.get('category'), MAX_LENGTHS['category']),
        'base_unit': base_unit or GRAM,
        'pack_size': pack_size,
        'pack_price': pack_price,
        'loss_pct': loss_pct,
    }
    return errors, parsed


def _parse_section(values):
    items = []
    for entry in values.get('items') or []:
        items.append(RecipeItem(
            ingredient_id=entry.get('ingredientId') or '',
            amount=_number(entry.get('amount')) or 0,
            unit=to_base_unit(entry.get('unit')) or GRAM,
        ))
    notes = _clean_text(values.get('notes'), MAX_LENGTHS['notes'])
    output_amount = _number(values.get('outputAmount'))
    usage_amount = _number(values.get('usageAmount'))
    return RecipeSection(
        id=values.get('id') or create_id('sec'),
        name=_clean_text(values.get('name'), MAX_LENGTHS['section_name']),
        items=items,
        notes=notes or None,
        output_amount=output_amount,
        output_unit=(to_base_unit(values.get('outputUnit')) or GRAM) if output_amount is not None else None,
        usage_amount=usage_amount if output_amount is not None else None,
    )


def validate_recipe_form(values, ingredients):
    """
    Validate recipe form input with its sections.

    Every section needs a name, the recipe needs at least one item with a
    positive amount, output and usage amounts must be positive when given,
    and each item's unit must match its ingredient's base unit.
    """
    errors = {}
    name = _clean_text(values.get('name'), MAX_LENGTHS['recipe_name'])
    if not name:
        errors['name'] = 'Enter a recipe name.'

    sections = [_parse_section(section) for section in values.get('sections') or []]
    if any(not section.name for section in sections):
        errors['sections'] = 'Every section needs a name.'

    items = [item for section in sections for item in section.items]
    if not items:
        errors['items'] = 'Add at least one ingredient to the recipe.'
    elif any(item.amount <= 0 for item in items):
        errors['items'] = 'Ingredient amounts must be greater than 0.'

    if any(s.output_amount is not None and s.output_amount <= 0 for s in sections):
        errors['outputAmount'] = 'Section output must be greater than 0.'
    if any(s.usage_amount is not None and s.usage_amount <= 0 for s in sections):
        errors['usageAmount'] = 'Used amount must be greater than 0.'

    by_id = {ingredient.id: ingredient for ingredient in ingredients}
    if any(item.ingredient_id in by_id and by_id[item.ingredient_id].base_unit != item.unit
           for item in items):
        errors['mismatch'] = 'Recipe item units must match their ingredient units.'

    parsed = {
        'name': name,
        'category': _clean_text(values.get('category'), MAX_LENGTHS['category']),
        'notes': _clean_text(values.get('notes'), MAX_LENGTHS['notes']),
        'sections': sections,
    }
    return errors, parsed


def add_item_to_section(section, ingredient, amount):
    """
    Add an ingredient to a section, merging with an existing row for it.

    Returns the updated section; amounts of merged rows are summed and
    rounded to 3 decimals.
    """
    if ingredient is None:
        raise ValidationError({'ingredient': 'Choose an ingredient.'})
    amount = _number(amount)
    if amount is None or amount <= 0:
        raise ValidationError({'amount': 'Enter an amount greater than 0.'})

    items = list(section.items)
    for index, item in enumerate(items):
        if item.ingredient_id == ingredient.id:
            items[index] = replace(item, amount=round(item.amount + amount, 3), row_cost=None)
            return replace(section, items=items)

    items.append(RecipeItem(ingredient_id=ingredient.id, amount=amount, unit=ingredient.base_unit))
    return replace(section, items=items)
