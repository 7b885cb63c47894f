from .record_validators import check_records, find_invalid_fields, key_tuple, keys_match

__all__ = ["check_records", "find_invalid_fields", "key_tuple", "keys_match"]
