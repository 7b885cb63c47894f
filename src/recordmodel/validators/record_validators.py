import logging
from typing import Any, Iterable, Mapping

from recordmodel.schema.descriptor import Schema
from recordmodel.schema.types import TypeChecker

logger = logging.getLogger(__name__)


def find_invalid_fields(record: dict[str, Any], schema: Schema, types: TypeChecker) -> list[str]:
    """
    Validate one record in place and return the names of the fields that failed.

    For every field except `auto` ones:
      - derived or non-persisted fields are removed from the record and skipped
      - a missing (absent or None) field fails unless it is optional
      - a present field fails if its value does not check against the field type
      - a missing optional field is set to an explicit None
    """
    invalid = []
    for field, spec in schema.items():
        if spec.auto:
            continue
        if spec.is_derived or not spec.persisted:
            record.pop(field, None)
            continue

        value = record.get(field)
        present = value is not None

        if not present:
            if not spec.optional:
                invalid.append(field)
                continue
            record[field] = None
        elif not types.check(value, spec.type):
            invalid.append(field)
    return invalid


def check_records(records: Iterable[dict[str, Any]], schema: Schema, types: TypeChecker) -> bool:
    """
    Validate a batch of records. Returns False as soon as one record fails.

    Records are normalized in place (see `find_invalid_fields`), so the batch a
    caller sees after a successful check is exactly what will be written.
    """
    for position, record in enumerate(records):
        invalid = find_invalid_fields(record, schema, types)
        if invalid:
            # keys only, values may be sensitive
            logger.info(
                "validators.record_rejected",
                extra={"position": position, "invalid_fields": sorted(invalid)},
            )
            return False
    return True


def key_tuple(record: Mapping[str, Any], key_fields: list[str]) -> tuple:
    """Ordered tuple of the record's key values (missing keys read as None)."""
    return tuple(record.get(key) for key in key_fields)


def keys_match(given: Iterable[str], key_fields: Iterable[str]) -> bool:
    """True if `given` names exactly the schema's key fields."""
    return set(given) == set(key_fields)
