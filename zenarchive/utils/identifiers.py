"""Parsing and validation of DOI and ORCID identifier strings."""

import re
from typing import Any, Optional, Tuple

from zenarchive.errors import InvalidOrcidFormat


DOI_PATTERN = re.compile(r'^10.\d{4,9}/[-._;()/:A-Z0-9]+$', re.IGNORECASE)
DOI_PREFIXED_PATTERN = re.compile(r'^doi:([^\s]+)', re.IGNORECASE)
DOI_URL_PREFIXES = ("doi:", "https://doi.org/", "http://doi.org/")
RECORD_ID_PATTERN = re.compile(r'zenodo\.(\d+)')

ORCID_PATTERN = re.compile(r'^\d{4}-\d{4}-\d{4}-\d{3}[\dX]$')
ORCID_URL_PREFIX = re.compile(r'^https?://(sandbox\.)?orcid\.org/')
ORCID_WORK_URL_PATTERN = re.compile(r'orcid\.org/+(\d{4}-\d{4}-\d{4}-\d{3}[0-9X])/work/(\d+)')


def is_doi(value: Any) -> bool:
    """
    Check whether a string is a DOI or a DOI URL.

    Args:
        value: Candidate string

    Returns:
        True for ``doi:...``, ``https://doi.org/...`` and bare ``10.xxxx/...`` forms
    """
    if not isinstance(value, str):
        return False
    if value.startswith(DOI_URL_PREFIXES):
        return True
    return bool(DOI_PATTERN.match(value) or DOI_PREFIXED_PATTERN.match(value))


def extract_record_id(doi: Any) -> Optional[str]:
    """
    Extract the registry record id from a Zenodo DOI.

    Examples:
        >>> extract_record_id("10.5072/zenodo.318466")
        '318466'
        >>> extract_record_id("https://doi.org/10.5072/zenodo.318466")
        '318466'
        >>> extract_record_id("not-a-doi") is None
        True
    """
    if not isinstance(doi, str):
        return None
    match = RECORD_ID_PATTERN.search(doi)
    return match.group(1) if match else None


def is_valid_orcid(value: Any) -> bool:
    """Return True if value has the ORCID iD format (no checksum test)."""
    return isinstance(value, str) and bool(ORCID_PATTERN.match(value))


def validate_orcid(value: Any) -> str:
    """
    Validate the format of an ORCID iD.

    Only the ``0000-0000-0000-000X`` layout is checked, the ISO 7064
    checksum is not.

    Raises:
        InvalidOrcidFormat: If the value does not have the ORCID layout
    """
    if not is_valid_orcid(value):
        raise InvalidOrcidFormat(value)
    return value


def orcid_from_path(path: Any) -> Optional[str]:
    """Extract an ORCID iD from an orcid.org URL or return a bare iD unchanged."""
    if not isinstance(path, str):
        return None
    if "orcid.org/" in path:
        orcid = ORCID_URL_PREFIX.sub("", path).strip("/")
        return orcid or None
    if is_valid_orcid(path):
        return path
    return None


def parse_orcid_work_url(url: str) -> Optional[Tuple[str, str]]:
    """Return ``(orcid, work_id)`` for URLs like https://orcid.org/<id>/work/<n>."""
    match = ORCID_WORK_URL_PATTERN.search(url or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def strip_doi_url(doi: str) -> str:
    """Return the bare DOI without resolver prefix."""
    return re.sub(r'^https?://(dx\.)?doi\.org/', '', doi.strip())


def doi_url(doi: str) -> str:
    """Return the https://doi.org/ URL for a bare DOI or a DOI URL."""
    return f"https://doi.org/{strip_doi_url(doi)}"
