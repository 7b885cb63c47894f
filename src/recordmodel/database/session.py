from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from recordmodel.config.settings import Settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(settings: Settings | None = None, url: str | None = None) -> AsyncEngine:
    """
    Create the AsyncEngine a SqlStore runs on.

    `url` wins over `settings.database_url`. SQLite connections get foreign key
    enforcement turned on, otherwise reference violations would never be reported.

    Raises:
        ValueError: If neither a url nor a configured database is given.
    """
    url = url or (settings.database_url if settings else None)
    if not url:
        raise ValueError("No database configured: set DATABASE_URL or POSTGRES_DB")

    options = {"echo": settings.SQLALCHEMY_ECHO if settings else False}
    backend = make_url(url).get_backend_name()
    if backend != "sqlite":
        options["pool_pre_ping"] = True

    engine = create_async_engine(url, **options)

    if backend == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine
