import logging
from enum import Enum

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

# =================================================================================================================
# Store-level error codes
# =================================================================================================================


class StoreErrorCode(int, Enum):
    """Codes a backing store attaches to a failed write."""
    UNIQUE = 1
    REFERENCE = 2
    CHECK = 3
    UNKNOWN = 99


class StoreError(Exception):
    """
    Raised by a backing store when a write violates a constraint.

    This is the contract between a store and the models: the store classifies its
    native failure into a `StoreErrorCode`, the models translate the code into a
    domain error (see mapper.py). It is never meant to reach callers of the models.
    """

    def __init__(self, code: StoreErrorCode, message: str = "", *, constraint: str | None = None):
        super().__init__(message or code.name.lower())
        self.code = code
        self.constraint = constraint


# =================================================================================================================
# Postgres error code mapping
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_STORE_CODE_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION: StoreErrorCode.UNIQUE,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION: StoreErrorCode.REFERENCE,
    # a missing required column is a data constraint like any CHECK
    PostgresErrorCodes.NOT_NULL_VIOLATION: StoreErrorCode.CHECK,
    PostgresErrorCodes.CHECK_VIOLATION: StoreErrorCode.CHECK,
}


# =================================================================================================================
# Integrity Error Classifiers
# =================================================================================================================

def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _classify_from_postgres_diag(orig) -> tuple[StoreErrorCode | None, str | None]:
    """
    Classify a Postgres integrity error from its SQLSTATE and diagnostics.

    psycopg2 exposes the code as `pgcode`, psycopg 3 and asyncpg as `sqlstate`.
    """
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not pgcode:
        return None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None
    if constraint_name is None:
        constraint_name = getattr(orig, "constraint_name", None)

    code = PGCODE_STORE_CODE_MAP.get(pgcode)

    if code:
        logger.debug("Postgres integrity diagnostic",
                     extra={"pgcode": pgcode, "constraint_name": constraint_name})
        return code, constraint_name

    logger.warning(
        "Unknown Postgres integrity error code encountered",
        extra={"pgcode": pgcode, "constraint_name": constraint_name}
    )
    logger.debug("Postgres orig diagnostic (raw)", extra={"orig_repr": repr(orig)})

    return StoreErrorCode.UNKNOWN, constraint_name


def _classify_from_generic_message(msg: str) -> tuple[StoreErrorCode, None]:
    """
    Classify an integrity error from its message (fallback for SQLite, MySQL, etc).
    """
    normalized = msg.lower()

    if _match_any(normalized, ["unique constraint", "unique failed", "unique violation", "duplicate"]):
        return StoreErrorCode.UNIQUE, None

    if _match_any(normalized, ["foreign key constraint", "foreign key", "is not present in table"]):
        return StoreErrorCode.REFERENCE, None

    if _match_any(normalized, ["not null constraint", "not null", "null value in column",
                               "check constraint", "check failed"]):
        return StoreErrorCode.CHECK, None

    logger.warning("Unknown integrity error message encountered", extra={"message_snippet": (msg or "")[:200]})
    logger.debug("Unknown integrity raw message", extra={"raw": msg})
    return StoreErrorCode.UNKNOWN, None


def classify_integrity_error(exc: IntegrityError) -> tuple[StoreErrorCode, str | None]:
    """
    Classify a SQLAlchemy IntegrityError into a `StoreErrorCode`.

    Returns:
        A tuple of (StoreErrorCode, constraint name if available)
    """
    orig = exc.orig

    code, constraint_name = _classify_from_postgres_diag(orig)

    if code is not None:
        return code, constraint_name

    return _classify_from_generic_message(str(orig) if orig is not None else str(exc))


def to_store_error(exc: IntegrityError) -> StoreError:
    """Build the `StoreError` a store raises in place of a driver IntegrityError."""
    code, constraint_name = classify_integrity_error(exc)
    return StoreError(code, str(exc.orig) if exc.orig is not None else str(exc), constraint=constraint_name)
