"""
Cost Calculation Service

Pure functions for ingredient, section and recipe costs. Every result is a
finite, non-negative number: missing ingredients, empty sections and
degenerate arithmetic all contribute 0 instead of raising.

Item costs include the ingredient's loss factor (1 + lossPct/100), so an
ingredient with 10% trim costs 10% more per used gram.
"""

import re
from collections import namedtuple
from dataclasses import replace

from constants import GRAM, KG_WORDS, KG_TO_G, MIN_LOSS_PCT, MAX_LOSS_PCT
from utils import is_positive, finite_or_zero, non_negative, clamp

RecipeCosts = namedtuple(
    'RecipeCosts',
    ['recipe_total_cost', 'cost_per_yield_unit', 'yield_amount', 'yield_unit'],
)


def ingredient_unit_price(ingredient):
    """Price of one base unit (packPrice / packSize); 0 when either is not positive."""
    pack_size = finite_or_zero(ingredient.pack_size)
    pack_price = finite_or_zero(ingredient.pack_price)
    if pack_size <= 0 or pack_price <= 0:
        return 0.0
    return non_negative(pack_price / pack_size)


def loss_factor(ingredient):
    """Multiplier for purchased quantity lost to waste, from lossPct clamped to 0-100."""
    loss_pct = clamp(ingredient.loss_pct, MIN_LOSS_PCT, MAX_LOSS_PCT)
    return 1 + loss_pct / 100


def item_cost(item, ingredient):
    """
    Cost of one recipe item: amount x unit price x loss factor.

    Returns 0 when the ingredient is missing or has no positive pack size,
    or when the item amount is not positive.
    """
    if ingredient is None or not is_positive(ingredient.pack_size):
        return 0.0
    amount = finite_or_zero(item.amount)
    if amount <= 0:
        return 0.0
    return non_negative(amount * ingredient_unit_price(ingredient) * loss_factor(ingredient))


def _index_by_id(entities):
    return {entity.id: entity for entity in entities or []}


def section_base_cost(section, ingredients, recipes=None, _visiting=frozenset()):
    """
    Sum of item costs in a section. Items whose ingredient cannot be found add 0.

    A section linked to another recipe (linked_recipe_id) costs that recipe's
    total instead, when recipes are supplied. Missing or circular links cost 0.
    """
    if section.linked_recipe_id and recipes is not None:
        if section.linked_recipe_id in _visiting:
            return 0.0
        linked = _index_by_id(recipes).get(section.linked_recipe_id)
        if linked is None:
            return 0.0
        return _recipe_total(linked, ingredients, recipes, _visiting)

    by_id = _index_by_id(ingredients)
    total = 0.0
    for item in section.items:
        total += item_cost(item, by_id.get(item.ingredient_id))
    return non_negative(total)


def usage_ratio(section):
    """
    Share of the section's output used by the recipe, clamped to [0, 1].

    None when the section does not define both a positive output and a
    positive usage amount (the whole section is used).
    """
    if not is_positive(section.output_amount) or not is_positive(section.usage_amount):
        return None
    return clamp(non_negative(section.usage_amount / section.output_amount), 0, 1)


def section_effective_cost(section, ingredients, recipes=None, _visiting=frozenset()):
    """Base cost discounted by the usage ratio (e.g. 250 g used of 1000 g made -> 25%)."""
    base_cost = section_base_cost(section, ingredients, recipes, _visiting)
    ratio = usage_ratio(section)
    if ratio is None:
        return base_cost
    return non_negative(base_cost * ratio)


def yield_anchor(recipe):
    """First section (in order) with a positive output amount, or None."""
    for section in recipe.sections:
        if is_positive(section.output_amount):
            return section
    return None


def _recipe_total(recipe, ingredients, recipes, visiting):
    visiting = visiting | {recipe.id}
    total = 0.0
    for section in recipe.sections:
        total += section_effective_cost(section, ingredients, recipes, visiting)
    return non_negative(total)


def recipe_costs(recipe, ingredients, recipes=None):
    """
    Total cost of a recipe and its cost per yield unit.

    The yield comes from the first section with a positive output amount;
    without one the cost per yield unit is 0.
    """
    total = _recipe_total(recipe, ingredients, recipes, frozenset())
    anchor = yield_anchor(recipe)
    if anchor is None:
        return RecipeCosts(total, 0.0, None, None)
    per_unit = non_negative(total / anchor.output_amount)
    return RecipeCosts(total, per_unit, anchor.output_amount, anchor.output_unit or GRAM)


def with_row_costs(recipe, ingredients):
    """Copy of the recipe with every item's cached row_cost filled in."""
    by_id = _index_by_id(ingredients)
    sections = [
        replace(section, items=[
            replace(item, row_cost=item_cost(item, by_id.get(item.ingredient_id)))
            for item in section.items
        ])
        for section in recipe.sections
    ]
    return replace(recipe, sections=sections)


# ============================================
# ORDER PRICE SUGGESTION
# ============================================

def parse_order_size_value(raw, yield_unit):
    """
    Read an order size like '2,5 кг' or '1500' as a quantity in the recipe's yield unit.

    Sizes written in kilograms are converted to grams for gram-based recipes.
    Returns 0 when no positive number is found.
    """
    normalized = (raw or '').replace(',', '.').lower()
    match = re.search(r'\d+(?:\.\d+)?', normalized)
    if not match:
        return 0
    value = float(match.group(0))
    if not is_positive(value):
        return 0
    if yield_unit == GRAM and any(word in normalized for word in KG_WORDS):
        return value * KG_TO_G
    return value


def suggest_order_price(recipe, ingredients, size_text, recipes=None):
    """
    Price suggestion for an order of this recipe: order size x cost per yield unit.

    Returns None when the recipe has no usable cost per unit or the size
    cannot be read.
    """
    costs = recipe_costs(recipe, ingredients, recipes)
    if costs.cost_per_yield_unit <= 0:
        return None
    size = parse_order_size_value(size_text, costs.yield_unit)
    if size <= 0:
        return None
    return round(size * costs.cost_per_yield_unit, 2)
