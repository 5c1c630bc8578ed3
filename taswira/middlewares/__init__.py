from .db import DbSessionMiddleware
from .errors import error_middleware

__all__ = ["DbSessionMiddleware", "error_middleware"]
