"""
Database Base Module

Creates the SQLAlchemy database instance that all store tables inherit from.
This is separate to avoid circular imports.
"""

from flask_sqlalchemy import SQLAlchemy

# Initialized with the Flask app in create_app()
db = SQLAlchemy()
