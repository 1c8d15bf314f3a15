"""Restrict account registration to the campus email domains.

The allow-list lives in a single document in the store and is cached in
process memory for ``CACHE_TTL_MS`` between reads.
"""
import logging
from typing import Callable, List, Optional

import db
from domain_cache import DomainCache
from errors import ErrorKind, GateError

logger = logging.getLogger(__name__)

ALLOWED_DOMAINS_DOC_PATH = "config/emailDomains"

# Default cache for the lifetime of the process (one per Lambda container)
_default_cache = DomainCache()


def _parse_domains(doc: Optional[dict]) -> List[str]:
    domains = doc.get("domains") if doc else None
    if not isinstance(domains, list) or any(not isinstance(d, str) for d in domains):
        raise GateError(
            ErrorKind.FAILED_PRECONDITION,
            "Allowed email domains configuration is missing or invalid.",
        )
    return [d.lower().strip() for d in domains]


def get_allowed_domains(
    cache: Optional[DomainCache] = None,
    fetch: Optional[Callable[[str], Optional[dict]]] = None,
) -> List[str]:
    '''Return the allowed domains, reading the store only when the cache is stale.'''
    cache = cache or _default_cache
    cached = cache.get()
    if cached is not None:
        return cached

    now = cache.clock()
    fetch = fetch or db.get_document
    domains = _parse_domains(fetch(ALLOWED_DOMAINS_DOC_PATH))
    logger.info("Loaded %d allowed email domains", len(domains))
    return cache.put(domains, fetched_at_ms=now)


def email_domain(email: str) -> Optional[str]:
    '''Lowercased part after the last "@", or None for a malformed address.'''
    if "@" not in email:
        return None
    domain = email.rsplit("@", 1)[1].lower()
    return domain or None


def restrict_signup_by_domain(
    email: Optional[str],
    cache: Optional[DomainCache] = None,
    fetch: Optional[Callable[[str], Optional[dict]]] = None,
) -> None:
    """Accept the signup or raise a GateError.

    INVALID_ARGUMENT when no email is given, FAILED_PRECONDITION when the
    allow-list document is missing or malformed, PERMISSION_DENIED when
    the domain is not on the list.
    """
    if not email:
        raise GateError(ErrorKind.INVALID_ARGUMENT, "Email is required for registration.")

    allowed = get_allowed_domains(cache=cache, fetch=fetch)
    domain = email_domain(email)

    if not domain or domain not in allowed:
        logger.warning("Rejected signup for domain %s", domain or "unknown")
        raise GateError(
            ErrorKind.PERMISSION_DENIED,
            f'Unauthorized email domain "{domain or "unknown"}". Please use an allowed campus email.',
        )
