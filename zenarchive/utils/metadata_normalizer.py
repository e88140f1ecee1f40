"""
Metadata cleaning and provider payload shaping.

Zenodo rejects externally supplied DOIs under its own prefix and chokes on
empty subject entries, so metadata is cleaned before every submission.
"""

import logging
from typing import Any, Dict, List, Optional

from zenarchive.models import Creator, ProviderKind, is_blank
from zenarchive.utils.runtime_config import DEFAULT_PUBLISHER_NAME


logger = logging.getLogger(__name__)


DOI_FIELDS = ("doi", "doi_url")
DEFAULT_RESOURCE_TYPE = {"id": "dataset"}


def _is_empty_value(value: Any) -> bool:
    return value is None or value == "" or value == []


def _clean_subjects(metadata: Dict[str, Any]):
    subjects = metadata.get("subjects")
    if not isinstance(subjects, list):
        metadata.pop("subjects", None)
        return

    cleaned = []
    for subject in subjects:
        if isinstance(subject, dict):
            subject = {key: value for key, value in subject.items() if not _is_empty_value(value)}
            if not subject:
                continue
        cleaned.append(subject)

    if cleaned:
        metadata["subjects"] = cleaned
    else:
        metadata.pop("subjects", None)


def _clean_keywords(metadata: Dict[str, Any]):
    keywords = metadata.get("keywords")
    if isinstance(keywords, str):
        cleaned = [keyword.strip() for keyword in keywords.split(",")]
    elif isinstance(keywords, list):
        cleaned = [("" if k is None else str(k)).strip() for k in keywords]
    else:
        metadata.pop("keywords", None)
        return

    cleaned = [keyword for keyword in cleaned if keyword != ""]
    if cleaned:
        metadata["keywords"] = cleaned
    else:
        metadata.pop("keywords", None)


def clean_for_submission(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    Clean a metadata dict for submission to a provider.

    Steps: drop DOI fields, normalize subjects and keywords, then drop every
    key whose value is None or an empty string. The input is not modified.

    Args:
        metadata: Raw metadata (title, description, keywords, ...)

    Returns:
        Cleaned copy of the metadata
    """
    cleaned = {key: value for key, value in (metadata or {}).items() if key not in DOI_FIELDS}
    _clean_subjects(cleaned)
    _clean_keywords(cleaned)
    return {key: value for key, value in cleaned.items() if not is_blank(value)}


def format_affiliations(affiliation: Any) -> List[Dict[str, Any]]:
    """Normalize a string, ``{"name": ...}`` dict or list of either to ``[{"name": ...}]``."""
    if isinstance(affiliation, list):
        names = [a.get("name") if isinstance(a, dict) else a for a in affiliation]
        return [{"name": name} for name in names if name]
    if isinstance(affiliation, dict):
        name = affiliation.get("name")
        return [affiliation] if isinstance(name, str) and name else []
    if isinstance(affiliation, str) and affiliation:
        return [{"name": affiliation}]
    return []


def format_invenio_creator(creator: Creator) -> Dict[str, Any]:
    """Map a creator to the InvenioRDM ``person_or_org`` shape."""
    name = creator.name or f"{creator.given_name or ''} {creator.family_name or ''}".strip()
    person_or_org = {
        "given_name": creator.given_name,
        "family_name": creator.family_name or creator.name,
        "type": "personal",
        "name": name,
    }
    if isinstance(creator.orcid, str) and creator.orcid:
        person_or_org["identifiers"] = [{"identifier": creator.orcid, "scheme": "orcid"}]

    entry = {"person_or_org": person_or_org}
    affiliations = format_affiliations(creator.affiliation)
    if affiliations:
        entry["affiliations"] = affiliations
    return entry


def format_creators_for_provider(
    creators: List[Creator],
    provider: ProviderKind,
    metadata: Optional[Dict[str, Any]] = None,
    publisher: str = DEFAULT_PUBLISHER_NAME
) -> Dict[str, Any]:
    """
    Build the ``{"metadata": {...}}`` request body for a provider.

    Args:
        creators: Creators in author order
        provider: Target provider kind
        metadata: Deposit metadata
        publisher: Publisher used when InvenioRDM metadata has none

    Returns:
        Request payload
    """
    metadata = dict(metadata or {})

    if provider == ProviderKind.INVENIO:
        metadata = clean_for_submission(metadata)
        metadata.setdefault("resource_type", dict(DEFAULT_RESOURCE_TYPE))
        metadata.setdefault("publisher", publisher)
        metadata["creators"] = [format_invenio_creator(c) for c in creators]
    else:
        metadata["creators"] = [c.to_dict(include_internal=False) for c in creators]

    return {"metadata": metadata}


def provider_error_to_message(errors: Any) -> str:
    """
    Turn a provider error list into one readable line.

    Example:
        ``[{"field": "metadata.title", "messages": ["Required"]}]`` ->
        ``"metadata.title: Required"``
    """
    if isinstance(errors, list):
        parts = []
        for error in errors:
            if isinstance(error, dict) and isinstance(error.get("messages"), list):
                parts.append(f"{error.get('field')}: {'; '.join(str(m) for m in error['messages'])}")
            elif isinstance(error, dict) and "message" in error and "field" in error:
                parts.append(f"{error['field']}: {error['message']}")
            else:
                parts.append(repr(error))
        return " | ".join(parts)
    if isinstance(errors, dict) and "message" in errors:
        return str(errors["message"])
    return repr(errors)
