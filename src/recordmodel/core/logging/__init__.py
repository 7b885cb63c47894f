from recordmodel.core.logging.builder import make_dict_config, setup_logging
from recordmodel.core.logging.filters import (
    OperationIdFilter,
    RedactFilter,
    get_operation_id,
    operation_scope,
    reset_operation_id,
    set_operation_id,
)
from recordmodel.core.logging.formatters import ColorFormatter, JsonFormatter

__all__ = [
    "make_dict_config",
    "setup_logging",
    "OperationIdFilter",
    "RedactFilter",
    "get_operation_id",
    "set_operation_id",
    "reset_operation_id",
    "operation_scope",
    "JsonFormatter",
    "ColorFormatter",
]
