"""
Store Metadata Model

Key-value storage for store bookkeeping such as the schema version marker.
"""

from .base import db


class StoreMeta(db.Model):
    """Key-value storage for store metadata."""
    __tablename__ = 'store_meta'
    key = db.Column(db.String(50), primary_key=True)
    value = db.Column(db.String(200))
