# Overview: Error taxonomy and primitive input parsing shared by services and routes.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


class DomainError(Exception):
    """
    Root of every business error raised by the workflow layer.

    status_code is only read by the transport layer (see create_app);
    services never look at it.
    """
    status_code = 400


class ValidationError(DomainError, ValueError):
    """400-level input problem."""


class FormatError(ValidationError):
    """An identifier failed its length or charset rule."""


class MismatchError(ValidationError):
    """Two identifiers that must agree do not (e.g. product number vs SKU)."""


class PasswordValidationError(ValidationError):
    """Password does not meet the strength policy."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Password does not meet requirements: " + "; ".join(self.errors))


class AuthenticationError(DomainError):
    """Credentials or tokens could not be verified."""
    status_code = 401


class ForbiddenError(DomainError):
    """Actor is inactive or not allowed to perform the action."""
    status_code = 403


class NotFoundError(DomainError, LookupError):
    """Referenced user/box/shipment/rfid does not exist."""
    status_code = 404


class ConflictError(DomainError, ValueError):
    """409-level business rule conflict (duplicate identifier, locked entity, bad transition)."""
    status_code = 409


class SerialOverflowError(DomainError, OverflowError):
    """A numeric sequence would pass its maximum (9999 / 99999)."""


class GenerationExhaustedError(DomainError):
    """Bounded identifier synthesis ran out of attempts."""
    status_code = 503


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def require_fields(payload: Mapping[str, Any] | None, *fields: str) -> dict:
    """
    Ensure a JSON payload is an object containing every listed field.

    Returns the payload as a plain dict.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationError("Invalid JSON payload")

    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return dict(payload)


def parse_int(value: Any, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and maximum is not None and not (minimum <= result <= maximum):
        raise ValidationError(f"{field} must be between {minimum} and {maximum}")
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be <= {maximum}")
    return result


def parse_pagination(
    page: Any = None,
    limit: Any = None,
    *,
    default_limit: int = 20,
    max_limit: int = 100,
) -> Pagination:
    """Page is 1-based; limit is bounded to 1..max_limit."""
    page_num = 1 if page in (None, "") else parse_int(page, "page", minimum=1)
    limit_num = default_limit if limit in (None, "") else parse_int(limit, "limit", minimum=1, maximum=max_limit)
    return Pagination(page=page_num, limit=limit_num)
