"""ORCID API client: public work lookup and adding works to a profile."""

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import requests

from zenarchive.errors import ProviderApiError, TransportError, ValidationError
from zenarchive.models import Creator
from zenarchive.utils.identifiers import is_valid_orcid, parse_orcid_work_url, strip_doi_url
from zenarchive.utils.runtime_config import ORCID_MEMBER_API_URL


logger = logging.getLogger(__name__)


DESCRIPTION_MAX_LENGTH = 4500

# Zenodo upload types -> ORCID work types
WORK_TYPES = {
    "publication": "journal-article",
    "dataset": "data-set",
    "software": "software",
    "poster": "conference-poster",
    "presentation": "lecture-speech",
    "other": "other",
}


class OrcidClient:
    """
    Client for the ORCID public and member APIs.

    Reading works needs no authentication; adding works needs a member API
    token with the /activities/update scope.
    """

    PUBLIC_ENDPOINT = "https://pub.orcid.org/v3.0"
    TIMEOUT = 10
    CONTENT_TYPE = "application/vnd.orcid+json"

    def __init__(self, member_endpoint: str = None, public_endpoint: str = None):
        """
        Initialize the ORCID client.

        Args:
            member_endpoint: Member API base URL (default: production)
            public_endpoint: Public API base URL (default: production)
        """
        self.member_endpoint = (member_endpoint or ORCID_MEMBER_API_URL).rstrip('/')
        self.public_endpoint = (public_endpoint or self.PUBLIC_ENDPOINT).rstrip('/')

    def fetch_work(self, orcid: str, work_id: str) -> Dict[str, Any]:
        """
        Fetch a work from the public API.

        Raises:
            ProviderApiError: If ORCID answers with an error status
            TransportError: If the request fails
        """
        url = f"{self.public_endpoint}/{orcid}/work/{work_id}"
        logger.debug(f"Fetching ORCID work {orcid}/{work_id}")

        try:
            response = requests.get(url, headers={"Accept": "application/json"}, timeout=self.TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch ORCID work {url}: {e}")
            raise TransportError(f"ORCID request failed: {e}", operation="fetch_work")

        if response.status_code != 200:
            logger.error(f"ORCID work fetch failed with HTTP {response.status_code}")
            raise ProviderApiError(
                f"ORCID API error (HTTP {response.status_code})",
                status=response.status_code,
                body=response.text,
                operation="fetch_work"
            )
        return response.json()

    def fetch_work_metadata(self, url: str) -> Dict[str, Any]:
        """
        Fetch link preview data for an ORCID work URL.

        Args:
            url: URL like https://orcid.org/0000-0002-5534-712X/work/182038255

        Returns:
            Dict with the raw work under ``orcid`` and, when present, ``doi``
            and ``canonical_url``

        Raises:
            ValidationError: If the URL is not an ORCID work URL
        """
        parsed = parse_orcid_work_url(url)
        if parsed is None:
            raise ValidationError({"url": f"Not an ORCID work URL: {url}"})

        work = self.fetch_work(*parsed)
        doi = extract_doi_from_work(work)
        metadata = {"orcid": work}
        if doi:
            metadata["doi"] = doi
            metadata["canonical_url"] = f"https://doi.org/{doi}"
        return metadata

    def add_work(self, orcid: str, access_token: str, work: Dict[str, Any]) -> str:
        """
        Add a work to an ORCID profile.

        Args:
            orcid: ORCID iD of the profile owner
            access_token: Member API token of the profile owner
            work: Work record from ``build_work_record()``

        Returns:
            The put-code of the new work ("unknown" if ORCID does not return one)

        Raises:
            ProviderApiError: 409 if the work already exists, other statuses on failure
            TransportError: If the request fails
        """
        url = f"{self.member_endpoint}/{orcid}/work"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": self.CONTENT_TYPE,
            "Accept": self.CONTENT_TYPE,
        }

        try:
            response = requests.post(url, json=work, headers=headers, timeout=self.TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.error(f"ORCID add work request failed: {e}")
            raise TransportError(f"ORCID request failed: {e}", operation="add_work")

        if response.status_code == 201:
            try:
                put_code = response.json().get("put-code")
            except ValueError:
                put_code = None
            if put_code is None:
                # ORCID sends the put-code in the Location header
                location = response.headers.get("Location", "")
                put_code = location.rstrip('/').rsplit('/', 1)[-1] if location else "unknown"
            logger.info(f"Added work to ORCID profile {orcid}, put-code: {put_code}")
            return str(put_code)

        if response.status_code == 409:
            error_msg = "Work already exists in ORCID profile"
        elif response.status_code in (401, 403):
            error_msg = "ORCID token lacks write access"
        else:
            error_msg = f"ORCID API error (HTTP {response.status_code})"

        logger.error(f"{error_msg}: {response.text}")
        raise ProviderApiError(error_msg, status=response.status_code, body=response.text, operation="add_work")


def extract_doi_from_work(work: Dict[str, Any]) -> Optional[str]:
    """Return the first DOI listed in a work's external ids."""
    external_ids = (work.get("external-ids") or {}).get("external-id") or []
    if isinstance(external_ids, dict):
        external_ids = [external_ids]
    for external_id in external_ids:
        if external_id.get("external-id-type") == "doi":
            return external_id.get("external-id-value")
    return None


def _parse_publication_date(value: Any) -> Tuple[str, Optional[str], Optional[str]]:
    if isinstance(value, str):
        try:
            parsed = date.fromisoformat(value)
            return str(parsed.year), f"{parsed.month:02d}", f"{parsed.day:02d}"
        except ValueError:
            pass
    return str(datetime.now().year), None, None


def _short_description(description: Any) -> Optional[str]:
    if not isinstance(description, str) or not description.strip():
        return None
    text = re.sub(r'<[^>]*>', ' ', description)
    text = re.sub(r'\s+', ' ', text).strip()[:DESCRIPTION_MAX_LENGTH]
    return text if len(text) > 10 else None


def _contributors(creators: List[Creator]) -> List[Dict[str, Any]]:
    contributors = []
    for index, creator in enumerate(creators):
        contributor = {
            "contributor-attributes": {
                "contributor-sequence": "first" if index == 0 else "additional",
                "contributor-role": "author",
            }
        }
        if creator.name:
            contributor["credit-name"] = {"value": creator.name}
        if is_valid_orcid(creator.orcid):
            contributor["contributor-orcid"] = {
                "uri": f"https://orcid.org/{creator.orcid}",
                "path": creator.orcid,
                "host": "orcid.org",
            }
        contributors.append(contributor)
    return contributors


def build_work_record(doi: str, metadata: Dict[str, Any], creators: List[Creator] = None) -> Dict[str, Any]:
    """
    Build an ORCID work record for a published deposit.

    Args:
        doi: DOI or DOI URL of the deposit
        metadata: Deposit metadata (title, upload_type, publication_date,
            description, license)
        creators: Creators in author order

    Returns:
        Work record for the member API
    """
    clean_doi = strip_doi_url(doi)
    year, month, day = _parse_publication_date(metadata.get("publication_date"))

    publication_date = {"year": {"value": year}}
    if month:
        publication_date["month"] = {"value": month}
    if day:
        publication_date["day"] = {"value": day}

    work = {
        "title": {"title": {"value": metadata.get("title") or "Untitled Work"}},
        "type": WORK_TYPES.get(metadata.get("upload_type") or "other", "other"),
        "external-ids": {
            "external-id": [{
                "external-id-type": "doi",
                "external-id-value": clean_doi,
                "external-id-relationship": "self",
            }]
        },
        "url": {"value": f"https://doi.org/{clean_doi}"},
        "publication-date": publication_date,
        "language-code": "en",
    }

    description = _short_description(metadata.get("description"))
    if description:
        work["short-description"] = description

    contributors = _contributors(creators or [])
    if contributors:
        work["contributors"] = {"contributor": contributors}

    license_id = metadata.get("license")
    if isinstance(license_id, dict):
        license_id = license_id.get("id")
    if license_id:
        text = f"{work.get('short-description', '')}\n\nLicense: {license_id}"
        if len(text) < DESCRIPTION_MAX_LENGTH:
            work["short-description"] = text

    return work
