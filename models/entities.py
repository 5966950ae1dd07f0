"""
Canonical Entities

Typed shapes of ingredients and recipes once the migrator has upgraded
their stored documents. The costing service only ever sees these types.

to_dict() produces the persisted document (camelCase keys, unset optional
fields omitted); from_dict() reads a document that is already canonical,
skipping sections or items that are not mappings.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import List, Optional

from constants import GRAM


@dataclass
class Ingredient:
    """
    A purchased ingredient.

    pack_size is the quantity in base_unit per purchased pack and
    pack_price the price of one pack; loss_pct is the share (0-100) of
    the purchased quantity lost to trim or waste.
    """
    id: str
    name: str
    base_unit: str = GRAM
    pack_size: float = 1
    pack_price: float = 0
    loss_pct: float = 0
    category: str = ''
    created_at: str = ''
    updated_at: str = ''

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'baseUnit': self.base_unit,
            'packSize': self.pack_size,
            'packPrice': self.pack_price,
            'lossPct': self.loss_pct,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            category=data.get('category') or '',
            base_unit=data.get('baseUnit', GRAM),
            pack_size=data.get('packSize', 1),
            pack_price=data.get('packPrice', 0),
            loss_pct=data.get('lossPct', 0),
            created_at=data.get('createdAt', ''),
            updated_at=data.get('updatedAt', ''),
        )


@dataclass
class RecipeItem:
    """An amount of one ingredient, in that ingredient's base unit."""
    ingredient_id: str
    amount: float
    unit: str = GRAM
    row_cost: Optional[float] = None

    def to_dict(self):
        data = {
            'ingredientId': self.ingredient_id,
            'amount': self.amount,
            'unit': self.unit,
        }
        if self.row_cost is not None:
            data['rowCost'] = self.row_cost
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            ingredient_id=data.get('ingredientId', ''),
            amount=data.get('amount', 0),
            unit=data.get('unit', GRAM),
            row_cost=data.get('rowCost'),
        )


@dataclass
class RecipeSection:
    """
    A named part of a recipe (sponge, ganache, ...).

    output_amount/output_unit describe what the section yields when made on
    its own. usage_amount is how much of that output the recipe consumes.
    """
    id: str
    name: str
    items: List[RecipeItem] = field(default_factory=list)
    notes: Optional[str] = None
    output_amount: Optional[float] = None
    output_unit: Optional[str] = None
    usage_amount: Optional[float] = None
    linked_recipe_id: Optional[str] = None

    def to_dict(self):
        data = {'id': self.id, 'name': self.name}
        if self.notes is not None:
            data['notes'] = self.notes
        if self.output_amount is not None:
            data['outputAmount'] = self.output_amount
            data['outputUnit'] = self.output_unit or GRAM
        if self.usage_amount is not None:
            data['usageAmount'] = self.usage_amount
        if self.linked_recipe_id:
            data['linkedRecipeId'] = self.linked_recipe_id
        data['items'] = [item.to_dict() for item in self.items]
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            items=[RecipeItem.from_dict(item) for item in data.get('items') or [] if isinstance(item, Mapping)],
            notes=data.get('notes'),
            output_amount=data.get('outputAmount'),
            output_unit=data.get('outputUnit'),
            usage_amount=data.get('usageAmount'),
            linked_recipe_id=data.get('linkedRecipeId'),
        )


@dataclass
class Recipe:
    """A recipe made of ordered sections. The first section with a positive output is its yield."""
    id: str
    name: str
    sections: List[RecipeSection] = field(default_factory=list)
    category: str = ''
    notes: str = ''
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    created_at: str = ''
    updated_at: str = ''

    def to_dict(self):
        data = {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'sections': [section.to_dict() for section in self.sections],
            'notes': self.notes,
        }
        if self.file_name is not None:
            data['fileName'] = self.file_name
        if self.file_url is not None:
            data['fileUrl'] = self.file_url
        data['createdAt'] = self.created_at
        data['updatedAt'] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            sections=[RecipeSection.from_dict(section) for section in data.get('sections') or []
                      if isinstance(section, Mapping)],
            category=data.get('category') or '',
            notes=data.get('notes') or '',
            file_name=data.get('fileName'),
            file_url=data.get('fileUrl'),
            created_at=data.get('createdAt', ''),
            updated_at=data.get('updatedAt', ''),
        )

    def ingredient_ids(self):
        """Ids of every ingredient referenced by any section."""
        return {item.ingredient_id for section in self.sections for item in section.items}
