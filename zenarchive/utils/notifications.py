"""Selection of co-authors who still need to supply an ORCID iD after publication."""

import logging
from typing import Any, Iterable, List
from urllib.parse import quote

from zenarchive.models import Creator, is_blank


logger = logging.getLogger(__name__)


def find_coauthors_to_notify(publisher_id: Any, creators: Iterable[Creator]) -> List[Creator]:
    """
    Return creators without ORCID, excluding the publisher.

    Args:
        publisher_id: Internal id of the user who published the deposit
        creators: Final creator list of the published deposit

    Returns:
        Creators to ask for their ORCID iD, in author order (may be empty)
    """
    recipients = [
        creator for creator in creators
        if is_blank(creator.orcid) and creator.id != publisher_id
    ]
    logger.debug(f"{len(recipients)} co-authors without ORCID")
    return recipients


def orcid_link_url(instance_url: str, post_id: Any, recipient: Creator) -> str:
    """Build the link a co-author follows to add their ORCID to a published deposit."""
    return (
        f"{instance_url.rstrip('/')}/open_science/orcid_link/{post_id}/add/{recipient.id}"
        f"?name={quote(recipient.name or '')}"
    )


def build_orcid_request_message(
    sender_name: str,
    recipient: Creator,
    title: str,
    doi: str,
    instance_url: str,
    post_id: Any
) -> str:
    """Compose the direct message asking a co-author for their ORCID iD."""
    link = orcid_link_url(instance_url, post_id, recipient)
    return (
        f"Hi! This is an automated message sent on behalf of {sender_name or 'someone'}.\n\n"
        f"I have just archived the discussion \"{title or 'Untitled'}\" with DOI: [{doi}]({doi}) "
        f"and included you as a co-author since you participated in the thread.\n\n"
        f"If you are a researcher and have an ORCID iD, please [visit this link]({link}) "
        f"to add it to the publication metadata. This will help properly attribute your "
        f"contribution and link it to your academic profile.\n\n"
        f"Thank you for your contribution to this research!\n"
    )
