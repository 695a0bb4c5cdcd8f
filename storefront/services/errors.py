"""Error taxonomy shared by the storefront services.

Every service error carries an ``http_status`` so the web layer can translate
it with a single handler. ``NotFound`` and ``ValidationFailed`` also derive
from ``ValueError``; callers that only know the plain ``ValueError`` contract
keep working.
"""

from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError


class StorefrontError(Exception):
    http_status = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"status": "error", "error": type(self).__name__, "message": self.message}


class Unauthenticated(StorefrontError):
    http_status = 401

    def __init__(self, message: str = "sign in required") -> None:
        super().__init__(message)


class AuthenticationFailed(Unauthenticated):
    def __init__(self, message: str = "invalid email or password") -> None:
        super().__init__(message)


class NotFound(StorefrontError, ValueError):
    http_status = 404


class ValidationFailed(StorefrontError, ValueError):
    http_status = 400


class InsufficientStock(ValidationFailed):
    pass


class PersistenceFailure(StorefrontError):
    """The database rejected or could not complete a read or write."""

    http_status = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class CheckoutFailed(StorefrontError):
    """Checkout stopped at ``stage``; earlier stages stay persisted."""

    http_status = 502

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"checkout failed at {stage}: {cause}")
        self.stage = stage
        self.cause = cause

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["stage"] = self.stage
        return payload


@contextmanager
def persistence_errors(action: str):
    """Re-raise database errors from the enclosed block as ``PersistenceFailure``."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceFailure(f"{action} failed", exc) from exc
