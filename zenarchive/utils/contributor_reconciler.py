"""
Reconciliation of creator lists from stored records, thread participants and form edits.

People are identified by ORCID, then internal user id, then display name.
An entry known only by name becomes ORCID-keyed once its ORCID is filled in,
without appearing twice.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from zenarchive.models import Creator, is_blank


logger = logging.getLogger(__name__)


def _merge_fields(existing: Creator, incoming: Creator) -> Creator:
    """Field-wise merge where incoming values win only when they are non-empty."""
    updates = {}
    for key in Creator.FIELDS:
        value = getattr(incoming, key)
        if not is_blank(value):
            updates[key] = value

    extra = dict(existing.extra)
    for key, value in incoming.extra.items():
        if not is_blank(value):
            extra[key] = value

    # hidden is a soft delete: a participant showing up again does not undo it
    return replace(existing, extra=extra, hidden=existing.hidden or incoming.hidden, **updates)


def merge_creators(base: Iterable[Creator], incoming: Iterable[Creator]) -> List[Creator]:
    """
    Merge incoming creators into a base list.

    Each incoming creator is matched against the base list by ORCID, then
    id, then name (first match wins). Matches are merged in place,
    unmatched creators are appended. The result is deduplicated by identity
    key, keeping the first occurrence.

    Args:
        base: Creators already stored with the record
        incoming: Thread participants or creators submitted by the form

    Returns:
        Merged creator list in stable order
    """
    base = list(base)
    by_orcid: Dict[Any, Creator] = {}
    by_id: Dict[Any, Creator] = {}
    by_name: Dict[Any, Creator] = {}
    for creator in base:
        if not is_blank(creator.orcid):
            by_orcid[creator.orcid] = creator
        if not is_blank(creator.id):
            by_id[creator.id] = creator
        if not is_blank(creator.name):
            by_name[creator.name] = creator

    merged = list(base)
    for creator in incoming:
        if not is_blank(creator.orcid) and creator.orcid in by_orcid:
            field_name, value, existing = "orcid", creator.orcid, by_orcid[creator.orcid]
        elif not is_blank(creator.id) and creator.id in by_id:
            field_name, value, existing = "id", creator.id, by_id[creator.id]
        elif not is_blank(creator.name) and creator.name in by_name:
            field_name, value, existing = "name", creator.name, by_name[creator.name]
        else:
            logger.debug(f"Adding new creator: {creator.name}")
            merged.append(creator)
            continue

        updated = _merge_fields(existing, creator)
        merged = [updated if getattr(c, field_name) == value else c for c in merged]

    return deduplicate_creators(merged)


def deduplicate_creators(creators: Iterable[Creator]) -> List[Creator]:
    """Drop later creators that share an identity key with an earlier one."""
    seen = set()
    result = []
    for creator in creators:
        key = creator.identity_key()
        if key is not None and key in seen:
            logger.debug(f"Dropping duplicate creator {key}")
            continue
        if key is not None:
            seen.add(key)
        result.append(creator)
    return result


def creators_from_form(params: Optional[Dict[str, Any]]) -> List[Creator]:
    """
    Read creators from indexed form parameters.

    The form posts ``{"creators": {"0": {...}, "1": {...}}}``; entries are
    ordered by their integer index, hidden entries and blank names dropped.
    """
    entries = (params or {}).get("creators")
    if not isinstance(entries, dict):
        return []

    creators = []
    for _index, data in sorted(entries.items(), key=lambda item: int(item[0])):
        creator = Creator.from_dict(data)
        if creator.is_visible:
            creators.append(creator)
    return creators


def creators_from_record(raw: Optional[Dict[str, Any]]) -> List[Creator]:
    """
    Read the creators stored in a provider record.

    Handles both the Zenodo shape (flat dicts) and the InvenioRDM
    ``person_or_org`` shape.
    """
    entries = ((raw or {}).get("metadata") or {}).get("creators") or []
    creators = []
    for entry in entries:
        person = entry.get("person_or_org")
        if person is None:
            creators.append(Creator.from_dict(entry))
            continue

        orcid = None
        for identifier in person.get("identifiers") or []:
            if identifier.get("scheme") == "orcid":
                orcid = identifier.get("identifier")
        affiliations = [a.get("name") for a in entry.get("affiliations") or [] if a.get("name")]
        creators.append(Creator(
            name=person.get("name") or "",
            orcid=orcid,
            given_name=person.get("given_name"),
            family_name=person.get("family_name"),
            affiliation=affiliations or None
        ))
    return creators


def reconcile_creators(
    stored: Iterable[Creator],
    participants: Iterable[Creator],
    submitted: Iterable[Creator]
) -> List[Creator]:
    """Combine stored creators, thread participants and form edits, in that order."""
    return merge_creators(merge_creators(stored, participants), submitted)


def creators_from_participants(participants: Iterable[Dict[str, Any]]) -> List[Creator]:
    """Build creators from thread participants (dicts with id, name and optional orcid)."""
    creators = []
    for participant in participants:
        creator = Creator.from_dict(participant)
        if not is_blank(creator.name):
            creators.append(creator)
    return creators
