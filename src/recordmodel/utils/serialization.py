"""
Cycle-safe rendering of records for diagnostics.

Error messages embed the filter or the batch of records that caused them. Records
may contain back-references (derived values that point at other records, or at the
record itself), so `json.dumps` cannot be used directly: it would raise on a cycle.

`safe_structure` walks the value once and replaces every container it has already
visited with the string "...". `safe_dumps` serializes the result as compact JSON.
"""

import json
from typing import Any

REPEATED = "..."


def safe_structure(value: Any, _seen: set[int] | None = None) -> Any:
    """
    Return a JSON-friendly copy of `value` where repeated containers become "...".

    Args:
        value: Any value; dicts, lists, tuples and sets are walked.

    Returns:
        A structure made of dicts, lists and scalars. Objects that are not
        containers are passed through unchanged and stringified later by `safe_dumps`.
    """
    seen = set() if _seen is None else _seen

    if isinstance(value, (dict, list, tuple, set, frozenset)):
        if id(value) in seen:
            return REPEATED
        seen.add(id(value))

        if isinstance(value, dict):
            return {str(k): safe_structure(v, seen) for k, v in value.items()}
        return [safe_structure(v, seen) for v in value]

    return value


def safe_dumps(value: Any) -> str:
    """
    Serialize `value` to compact JSON, tolerating cycles and non-JSON objects.

    Example:
        >>> a = {"id": 1}
        >>> a["self"] = a
        >>> safe_dumps([a])
        '[{"id":1,"self":"..."}]'
    """
    return json.dumps(
        safe_structure(value),
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


__all__ = ["safe_dumps", "safe_structure", "REPEATED"]
