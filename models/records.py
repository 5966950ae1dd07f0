"""
Record Collections

Each collection is a table of JSON documents keyed by the document id.
The store never relies on columns other than id/data, so older document
shapes can live in the same table until the migrator rewrites them.
"""

from .base import db


class DocumentMixin:
    """Primary key plus the raw JSON document."""
    id = db.Column(db.String(64), primary_key=True)
    data = db.Column(db.JSON, nullable=False, default=dict)


class CustomerRecord(DocumentMixin, db.Model):
    __tablename__ = 'customers'


class OrderRecord(DocumentMixin, db.Model):
    __tablename__ = 'orders'


class IngredientRecord(DocumentMixin, db.Model):
    __tablename__ = 'ingredients'


class RecipeRecord(DocumentMixin, db.Model):
    __tablename__ = 'recipes'


class SettingsRecord(DocumentMixin, db.Model):
    __tablename__ = 'settings'


# Collection name -> table model
COLLECTIONS = {
    'customers': CustomerRecord,
    'orders': OrderRecord,
    'ingredients': IngredientRecord,
    'recipes': RecipeRecord,
    'settings': SettingsRecord,
}
