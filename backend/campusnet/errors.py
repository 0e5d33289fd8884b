"""Error taxonomy for design generation and the request workflow."""

from __future__ import annotations

from typing import Any


class CampusNetError(Exception):
    """Base class. `detail` is machine-readable context for the caller."""

    kind = "error"

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, "detail": self.detail}


class ValidationError(CampusNetError):
    """Malformed input, rejected before any computation."""

    kind = "validation_error"

    def __init__(self, problems: list[str]):
        super().__init__(
            "Invalid requirements: " + "; ".join(problems),
            {"problems": problems},
        )
        self.problems = problems


class CatalogIncompleteError(CampusNetError):
    """The device catalog cannot supply every required device type."""

    kind = "catalog_incomplete"

    def __init__(self, problems: dict[str, str]):
        listing = ", ".join(f"{device_type} ({reason})" for device_type, reason in problems.items())
        super().__init__(
            f"Device catalog is incomplete: {listing}",
            {"device_types": problems},
        )
        self.problems = problems

    @property
    def device_types(self) -> list[str]:
        return list(self.problems)


class AddressSpaceExhaustedError(CampusNetError):
    """A department does not fit, or the allocator ran out of blocks."""

    kind = "address_space_exhausted"

    def __init__(self, message: str, department_name: str | None = None):
        super().__init__(message, {"department": department_name})
        self.department_name = department_name


class AuthorizationError(CampusNetError):
    """Actor's role or assignment does not satisfy a transition guard."""

    kind = "authorization_error"


class PreconditionError(CampusNetError):
    """A transition guard other than authorization failed."""

    kind = "precondition_failed"


class NotFoundError(CampusNetError):
    """Unknown request, design, device or user id."""

    kind = "not_found"


class SideEffectError(CampusNetError):
    """A notification or rendering collaborator failed. Never fatal."""

    kind = "side_effect_failed"
