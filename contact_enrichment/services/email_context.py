"""Derive company and person hints from a bare email address."""

import logging
import re

from contact_enrichment.core.exceptions import InvalidEmailError
from contact_enrichment.models.enrichment import EmailContext

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^([^@]+)@([^@]+)$")
_CAMEL_NAME_RE = re.compile(r"^([a-z]+)([A-Z][a-z]+)$")
_LOCAL_PART_SEPARATORS = re.compile(r"[._-]")

# Consumer mail providers; addresses here say nothing about an employer
PERSONAL_DOMAINS = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "outlook.com",
        "hotmail.com",
        "aol.com",
    }
)

# Domain labels whose company name is not a plain title-casing of the label
KNOWN_COMPANY_NAMES: dict[str, str] = {
    "onetrust": "OneTrust",
    "sideguide": "Sideguide",
    "frontapp": "Front",
    "shippo": "Shippo",
    "lattice": "Lattice",
    "pilot": "Pilot",
    "fundera": "Fundera",
    "flexport": "Flexport",
    "triplebyte": "Triplebyte",
    "zola": "Zola",
    "pinterest": "Pinterest",
    "brex": "Brex",
    "deel": "Deel",
    "scale": "Scale AI",
    "wiz": "Wiz",
    "firecrawl": "Firecrawl",
}


def is_personal_domain(domain: str) -> bool:
    """Check a domain against the consumer mail provider set."""
    return domain.lower() in PERSONAL_DOMAINS


def guess_company_name(domain: str) -> str | None:
    """Guess a display name from the first label of ``domain``.

    ``acme-labs.io`` becomes ``Acme Labs``. Single-label domains yield None.
    """
    labels = domain.split(".")
    if len(labels) < 2 or not labels[0]:
        return None

    label = labels[0].lower()
    if label in KNOWN_COMPANY_NAMES:
        return KNOWN_COMPANY_NAMES[label]

    words = [segment[:1].upper() + segment[1:] for segment in label.split("-") if segment]
    return " ".join(words) or None


def guess_personal_name(local_part: str) -> str | None:
    """Guess ``first last`` from the part of an address before ``@``.

    ``jane.doe`` and ``jane_q_doe`` use the first and last segment;
    ``janeDoe`` is split at the capital. Anything else yields None.
    """
    parts = [part for part in _LOCAL_PART_SEPARATORS.split(local_part) if part]
    if len(parts) >= 2:
        return f"{parts[0]} {parts[-1]}"

    if len(parts) == 1:
        match = _CAMEL_NAME_RE.match(parts[0])
        if match:
            return f"{match.group(1)} {match.group(2).lower()}"

    return None


def parse_email_context(email: str) -> EmailContext:
    """Parse an address into an :class:`EmailContext`.

    Args:
        email: Address to parse.

    Returns:
        The derived context.

    Raises:
        InvalidEmailError: If the address is not ``local@domain`` shaped.
    """
    match = _EMAIL_RE.match(email or "")
    if not match:
        raise InvalidEmailError(email)

    local_part, domain = match.group(1), match.group(2).lower()
    personal = is_personal_domain(domain)

    context = EmailContext(
        email=email,
        domain=domain,
        company_domain=None if personal else domain,
        personal_name=guess_personal_name(local_part),
        company_name_guess=guess_company_name(domain),
        is_personal_email=personal,
    )
    logger.debug(
        "Parsed email context",
        extra={"domain": domain, "is_personal_email": personal},
    )
    return context
