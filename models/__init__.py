"""
Models Package

Exports the store tables, the canonical entities and the db instance.
"""

from .base import db

from .records import (
    CustomerRecord,
    OrderRecord,
    IngredientRecord,
    RecipeRecord,
    SettingsRecord,
    COLLECTIONS,
)
from .meta import StoreMeta
from .entities import Ingredient, RecipeItem, RecipeSection, Recipe

__all__ = [
    'db',
    'CustomerRecord',
    'OrderRecord',
    'IngredientRecord',
    'RecipeRecord',
    'SettingsRecord',
    'COLLECTIONS',
    'StoreMeta',
    'Ingredient',
    'RecipeItem',
    'RecipeSection',
    'Recipe',
]
