"""Error taxonomy shared by the pages, pricing, domain and checkout layers.

Four families, each mapped to one HTTP status in ``linkhub.main``:

- ``ValidationError``: client-local, never reaches a collaborator (422)
- ``ConflictError``: reported by the authoritative store, shown verbatim (409)
- ``CollaboratorError``: transport failure, state untouched, retryable (503)
- ``InvariantViolation``: programmer error, operation refused (400)
"""

from __future__ import annotations

from typing import Optional


class LinkHubError(Exception):
    """Base class for all domain errors."""

    code: str = "error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(LinkHubError):
    code = "validation_error"

    def __init__(self, message: str, code: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, code)
        self.field = field


class DomainValidationError(ValidationError):
    code = "invalid_domain"


class ConflictError(LinkHubError):
    code = "conflict"


class DomainConflictError(ConflictError):
    code = "domain_conflict"


class SlugConflictError(ConflictError):
    code = "slug_conflict"

    def __init__(self, slug: str):
        super().__init__(f"Slug '{slug}' is already taken by another page")
        self.slug = slug


class CollaboratorError(LinkHubError):
    """A collaborator call failed in transit. Safe to retry."""

    code = "collaborator_unavailable"
    retryable = True

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class InvariantViolation(LinkHubError):
    code = "invariant_violation"


class ButtonIndexError(InvariantViolation, IndexError):
    code = "index_out_of_range"


class UnknownPageError(InvariantViolation, LookupError):
    code = "unknown_page"

    def __init__(self, page_ids: list[str]):
        super().__init__(f"Pages not found: {', '.join(page_ids)}")
        self.page_ids = page_ids


class InvalidTransitionError(InvariantViolation):
    code = "invalid_transition"


class UnknownCheckoutError(InvariantViolation, LookupError):
    code = "unknown_checkout"

    def __init__(self, checkout_id: str):
        super().__init__(f"Checkout not found: {checkout_id}")
        self.checkout_id = checkout_id
