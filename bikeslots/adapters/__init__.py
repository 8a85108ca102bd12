"""
Adapters layer - storage backends and the system clock.
"""

from .clock import SystemClock
from .memory_store import InMemoryStore, load_service_catalog
from .sql_store import SqlStore, create_sql_engine

__all__ = ["SystemClock", "InMemoryStore", "load_service_catalog", "SqlStore", "create_sql_engine"]
