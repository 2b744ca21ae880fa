"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface and the SQLite/PostgreSQL adapters
- Engine/session construction and the FastAPI session dependency
- SlugStoreGateway: the only place that builds queries against slugs and hits

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in get_database_adapter() in adapters.py
"""

from app.db.interface import DatabaseAdapter
from app.db.gateway import SlugStoreGateway
from app.db.session import (
    build_engine,
    build_session_maker,
    create_tables,
    get_session,
    ping_database,
)

__all__ = [
    "DatabaseAdapter",
    "SlugStoreGateway",
    "build_engine",
    "build_session_maker",
    "create_tables",
    "get_session",
    "ping_database",
]
