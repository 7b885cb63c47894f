from .serialization import safe_dumps, safe_structure

__all__ = ["safe_dumps", "safe_structure"]
