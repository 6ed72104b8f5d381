"""
Domain error taxonomy and global exception handlers.

The access-control, pricing and AI generation code raises the typed errors
below; the handlers at the bottom translate them to HTTP responses and prevent
stack-trace leakage to clients.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Authentication / authorization ──────────────────────────────────
class AuthFailure(Exception):
    """Base class for every identity / authorization failure. Never retryable."""


class Unauthenticated(AuthFailure):
    """Credential absent, malformed, signature-invalid or expired."""


class TokenExpired(Unauthenticated):
    """Credential was well-formed and correctly signed but is past its expiry."""


class IdentityNotFound(AuthFailure):
    def __init__(self, identity_id: object) -> None:
        super().__init__(f"Identity {identity_id!r} no longer exists")
        self.identity_id = identity_id


class AccountDisabled(AuthFailure):
    def __init__(self, identity_id: object) -> None:
        super().__init__(f"Identity {identity_id!r} is deactivated")
        self.identity_id = identity_id


class Forbidden(AuthFailure):
    def __init__(self, required_roles: Iterable[object], actual_role: object) -> None:
        self.required_roles = frozenset(required_roles)
        self.actual_role = actual_role
        super().__init__(
            f"Role {actual_role!s} not in {sorted(str(r) for r in self.required_roles)}"
        )


class PermissionDenied(AuthFailure):
    def __init__(self, permission: object, actual_permissions: Iterable[object]) -> None:
        self.permission = permission
        self.actual_permissions = frozenset(actual_permissions)
        super().__init__(f"Missing permission {permission!s}")


# ── Pricing ─────────────────────────────────────────────────────────
class InvalidLineItem(ValueError):
    """A line item violates the checkout preconditions (quantity / price)."""


# ── AI generation ───────────────────────────────────────────────────
class GenerationError(Exception):
    """The language-model backend could not produce a result."""


class GenerationUnavailable(GenerationError):
    """No model backend is configured."""


class GenerationFailed(GenerationError):
    """The backend was reached but the call failed or returned nothing usable."""


# ── Handlers ────────────────────────────────────────────────────────
_AUTHENTICATION_FAILURES = (Unauthenticated, IdentityNotFound, AccountDisabled)


async def _auth_failure_handler(request: Request, exc: AuthFailure) -> JSONResponse:
    if isinstance(exc, _AUTHENTICATION_FAILURES):
        # Exact reason stays server-side; clients only see a generic 401.
        logger.info(
            "Authentication failed on %s: %s (%s)",
            request.url.path,
            type(exc).__name__,
            exc,
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Could not validate credentials", "success": False},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(exc, PermissionDenied):
        detail = f"Missing permission: {exc.permission!s}"
    else:
        detail = "Insufficient role"
    logger.info("Authorization denied on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": detail, "success": False},
    )


async def _invalid_line_item_handler(_request: Request, exc: InvalidLineItem) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "success": False},
    )


async def _generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    if isinstance(exc, GenerationUnavailable):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "AI services are currently unavailable", "success": False},
        )
    logger.warning("AI generation failed on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "AI generation failed, please try again", "success": False},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AuthFailure, _auth_failure_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidLineItem, _invalid_line_item_handler)  # type: ignore[arg-type]
    app.add_exception_handler(GenerationError, _generation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
