"""Database module for the URL shortener application."""
from app.db.base import engine, get_engine, init_models, DatabaseHealthCheck
from app.db.session import get_db

__all__ = [
    "engine",
    "get_engine",
    "init_models",
    "DatabaseHealthCheck",
    "get_db",
]
