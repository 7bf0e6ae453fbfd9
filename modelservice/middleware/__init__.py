"""HTTP middleware."""

from modelservice.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
