"""Validation of deposit metadata before it is sent to a provider."""

import logging
from typing import Any, Dict, List

from zenarchive.errors import ValidationError
from zenarchive.models import Creator
from zenarchive.utils.identifiers import is_valid_orcid


logger = logging.getLogger(__name__)


TITLE_MAX_LENGTH = 500
DESCRIPTION_MIN_LENGTH = 10

UPLOAD_TYPE_OPTIONS = [
    ("Publication", "publication"),
    ("Dataset", "dataset"),
    ("Software", "software"),
    ("Other", "other"),
]

ACCESS_RIGHT_OPTIONS = [
    ("Open Access", "open"),
    ("Restricted", "restricted"),
    ("Closed", "closed"),
]

LICENSE_OPTIONS = [
    ("Creative Commons Attribution 4.0", "CC-BY-4.0"),
    ("Creative Commons Attribution Share-Alike 4.0", "CC-BY-SA-4.0"),
    ("Creative Commons Zero (Public Domain)", "CC0-1.0"),
    ("MIT License", "MIT"),
    ("Apache License 2.0", "Apache-2.0"),
]

DEFAULT_UPLOAD_TYPE = "publication"
DEFAULT_ACCESS_RIGHT = "open"
DEFAULT_LICENSE = "CC-BY-4.0"


def apply_defaults(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of metadata with upload type, access right and license filled in."""
    result = dict(metadata)
    result.setdefault("upload_type", DEFAULT_UPLOAD_TYPE)
    result.setdefault("access_right", DEFAULT_ACCESS_RIGHT)
    if result["access_right"] == "open":
        result.setdefault("license", DEFAULT_LICENSE)
    return result


def validate_metadata(metadata: Dict[str, Any], creators: List[Creator]) -> Dict[str, str]:
    """
    Check metadata and creators.

    Args:
        metadata: Deposit metadata
        creators: Creators in author order (hidden ones are ignored)

    Returns:
        Dict mapping field name to error message; empty if valid
    """
    errors = {}

    title = metadata.get("title")
    if not isinstance(title, str) or not title.strip():
        errors["title"] = "Title is required"
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be less than {TITLE_MAX_LENGTH} characters"

    description = metadata.get("description")
    if not isinstance(description, str) or len(description.strip()) < DESCRIPTION_MIN_LENGTH:
        errors["description"] = f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"

    visible = [c for c in creators if not c.hidden]
    if not any(c.is_visible for c in visible):
        errors["creators"] = "At least one author is required"

    invalid_orcids = [
        c.name or "Unknown author"
        for c in visible
        if (c.orcid or "").strip() and not is_valid_orcid((c.orcid or "").strip())
    ]
    if invalid_orcids:
        errors["creators"] = f"Invalid ORCID format for: {', '.join(invalid_orcids)}"

    if metadata.get("access_right") == "open" and not metadata.get("license"):
        errors["license"] = "License is required for open access"

    return errors


def ensure_valid(metadata: Dict[str, Any], creators: List[Creator]):
    """
    Validate metadata and creators.

    Raises:
        ValidationError: With one message per invalid field
    """
    errors = validate_metadata(metadata, creators)
    if errors:
        logger.warning(f"Metadata validation failed: {errors}")
        raise ValidationError(errors)
