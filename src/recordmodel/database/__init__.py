from recordmodel.database.protocols import Collection, Cursor, Filter, Order, Record, Store
from recordmodel.database.session import create_store_engine
from recordmodel.database.store import SqlCollection, SqlCursor, SqlStore

__all__ = [
    "Collection",
    "Cursor",
    "Filter",
    "Order",
    "Record",
    "Store",
    "SqlCollection",
    "SqlCursor",
    "SqlStore",
    "create_store_engine",
]
