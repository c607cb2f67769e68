"""Domain candidate normalization and policy checks.

Runs before any availability query. A failed check never reaches the
search collaborator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from linkhub.errors import DomainValidationError

ALLOWED_TLD = ".com"
MIN_LENGTH = 5

_SCHEME_PREFIX = re.compile(r"^(https?://)?(www\.)?")
_ALLOWED_CHARS = re.compile(r"^[a-z0-9.-]+$")


@dataclass(frozen=True)
class NormalizedDomain:
    value: str
    suffix_added: bool  # ".com" was appended and must be shown to the user


def normalize_domain(candidate: str) -> NormalizedDomain:
    """Lower-case, strip scheme and ``www.``, append ``.com`` when dot-less."""
    value = _SCHEME_PREFIX.sub("", (candidate or "").strip().lower()).rstrip("/")
    suffix_added = bool(value) and "." not in value
    if suffix_added:
        value += ALLOWED_TLD
    return NormalizedDomain(value=value, suffix_added=suffix_added)


def validate_domain(normalized: NormalizedDomain) -> None:
    """Raise ``DomainValidationError`` if the candidate breaks policy."""
    value = normalized.value
    if not value:
        raise DomainValidationError("Enter a domain name", code="domain_required", field="domain")
    if not _ALLOWED_CHARS.match(value):
        raise DomainValidationError(
            "Only letters, dots and hyphens are allowed", code="invalid_characters", field="domain"
        )
    if not value.endswith(ALLOWED_TLD) or value.count(".") != 1:
        raise DomainValidationError(
            "Only .com domains are allowed", code="tld_not_allowed", field="domain"
        )
    if any(ch.isdigit() for ch in value):
        raise DomainValidationError(
            "Domains cannot contain numbers", code="digits_not_allowed", field="domain"
        )
    if len(value) < MIN_LENGTH:
        raise DomainValidationError(
            f"Domain must be at least {MIN_LENGTH} characters", code="too_short", field="domain"
        )


def prepare_domain(candidate: str) -> NormalizedDomain:
    normalized = normalize_domain(candidate)
    validate_domain(normalized)
    return normalized
