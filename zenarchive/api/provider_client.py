"""HTTP clients for the Zenodo deposition API and the InvenioRDM records API."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from zenarchive.errors import CredentialError, ProviderApiError, TransportError, WorkflowStateError
from zenarchive.models import Creator, ProviderKind
from zenarchive.utils.metadata_normalizer import (
    format_creators_for_provider,
    provider_error_to_message,
)
from zenarchive.utils.runtime_config import DEFAULT_PUBLISHER_NAME, RuntimeConfig, load_config


logger = logging.getLogger(__name__)


SUCCESS_STATUSES = tuple(range(200, 300))


class ProviderClient(ABC):
    """
    Base client for a deposit provider.

    Subclasses own URL building and payload shaping for one API shape.
    The client keeps no state besides token and base URL, and never retries.
    """

    KIND: ProviderKind = None
    TIMEOUT = 10  # reads
    SUBMIT_TIMEOUT = 60  # metadata and file submissions

    def __init__(
        self,
        access_token: str,
        base_url: str,
        publisher_name: str = DEFAULT_PUBLISHER_NAME
    ):
        """
        Initialize the client.

        Args:
            access_token: Bearer token of the publishing user
            base_url: API base URL
            publisher_name: Publisher used when metadata has none

        Raises:
            CredentialError: If no access token is given
            ValueError: If no base URL is given
        """
        if not access_token:
            raise CredentialError("An access token is required")
        if not base_url:
            raise ValueError(f"No API URL configured for {self.KIND.value}")

        self.access_token = access_token
        self.base_url = base_url.rstrip('/')
        self.publisher_name = publisher_name

        logger.info(f"{self.KIND.value} client initialized with endpoint: {self.base_url}")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    # ------------------------------------------------------------------
    # URLs and payloads (provider specific)
    # ------------------------------------------------------------------

    @abstractmethod
    def collection_url(self) -> str:
        """Return the URL new drafts are created at."""

    @abstractmethod
    def record_url(self, record_id: str) -> str:
        """Return the URL of one record."""

    @abstractmethod
    def update_url(self, record_id: str) -> str:
        """Return the URL metadata updates are sent to."""

    @abstractmethod
    def publish_url(self, record_id: str) -> str:
        """Return the publish action URL."""

    @abstractmethod
    def new_version_url(self, record_id: str) -> str:
        """Return the new-version action URL."""

    def build_payload(self, creators: List[Creator], metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Build the request body for create and update calls."""
        return format_creators_for_provider(creators, self.KIND, metadata, self.publisher_name)

    @abstractmethod
    def upload_target(self, raw: Dict[str, Any]) -> str:
        """Return where files of the deposit in ``raw`` are uploaded to."""

    def new_version_id(self, raw: Dict[str, Any]) -> Optional[str]:
        """Return the record id of the draft created by a new-version call."""
        record_id = raw.get("id")
        return str(record_id) if record_id is not None else None

    def edit_url(self, raw: Dict[str, Any]) -> Optional[str]:
        """Return the unlock link of a published record, if the provider needs one."""
        return None

    def requires_unlock(self, published: bool) -> bool:
        """Return True if metadata of a record in this state can only change after an unlock."""
        return False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_draft(self, creators: List[Creator], metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new draft deposit.

        Args:
            creators: Creators in author order
            metadata: Cleaned deposit metadata

        Returns:
            Raw deposit as returned by the provider

        Raises:
            ProviderApiError: If the provider rejects the request
            TransportError: If the request fails on the network level
        """
        logger.info(f"Creating {self.KIND.value} draft: {metadata.get('title')}")
        return self._request(
            "POST",
            self.collection_url(),
            operation="create",
            json=self.build_payload(creators, metadata),
            timeout=self.SUBMIT_TIMEOUT
        )

    @abstractmethod
    def upload_file(self, target: str, filename: str, content: bytes) -> Dict[str, Any]:
        """
        Upload one file to a draft.

        Args:
            target: Upload target from ``upload_target()``
            filename: Name of the file at the provider
            content: File payload

        Returns:
            File info as returned by the provider
        """

    def update_metadata(
        self,
        record_id: str,
        creators: List[Creator],
        metadata: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Replace the metadata of a draft (or unlocked record)."""
        logger.info(f"Updating metadata of {self.KIND.value} record {record_id}")
        return self._request(
            "PUT",
            self.update_url(record_id),
            operation="update",
            json=self.build_payload(creators, metadata),
            timeout=self.SUBMIT_TIMEOUT
        )

    def publish(self, record_id: str) -> Dict[str, Any]:
        """Publish a draft, which assigns (or keeps) its DOI."""
        logger.info(f"Publishing {self.KIND.value} record {record_id}")
        return self._request(
            "POST",
            self.publish_url(record_id),
            operation="publish",
            headers={"Content-Type": "application/json"},
            timeout=self.SUBMIT_TIMEOUT
        )

    def create_new_version(self, record_id: str) -> Dict[str, Any]:
        """Create a new version draft of a published record."""
        logger.info(f"Creating new version of {self.KIND.value} record {record_id}")
        return self._request(
            "POST",
            self.new_version_url(record_id),
            operation="new_version",
            timeout=self.SUBMIT_TIMEOUT
        )

    def get_record(self, record_id: str) -> Dict[str, Any]:
        """Fetch a record."""
        logger.debug(f"Fetching {self.KIND.value} record {record_id}")
        return self._request("GET", self.record_url(record_id), operation="fetch")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        expected: Sequence[int] = SUCCESS_STATUSES,
        timeout: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Send a request and decode the JSON answer.

        Raises:
            ProviderApiError: If the status is not in ``expected``
            TransportError: On timeouts and connection failures
        """
        request_headers = dict(self.headers)
        request_headers.update(headers or {})

        logger.debug(f"{method} {url} ({operation})")

        try:
            response = requests.request(
                method,
                url,
                headers=request_headers,
                timeout=timeout or self.TIMEOUT,
                **kwargs
            )
        except requests.exceptions.Timeout:
            logger.error(f"Timeout during {operation}: {url}")
            raise TransportError(f"Request timed out ({operation})", operation=operation)
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error during {operation}: {e}")
            raise TransportError(
                f"Could not connect to {self.KIND.value} API: {self.base_url}",
                operation=operation
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error during {operation}: {e}")
            raise TransportError(f"Network error ({operation}): {e}", operation=operation)

        self._check_response(response, operation, expected)

        try:
            return response.json()
        except ValueError:
            return {}

    def _check_response(self, response: requests.Response, operation: str, expected: Sequence[int]):
        """Raise a ProviderApiError unless the status is expected."""
        status = response.status_code
        if status in expected:
            logger.debug(f"{operation} succeeded with HTTP {status}")
            return

        try:
            body = response.json()
        except ValueError:
            body = response.text

        if status == 401:
            error_msg = "Authentication failed, the access token is invalid or expired"
        elif status == 403:
            error_msg = "Access denied, the token lacks permission for this record"
        elif status == 404:
            error_msg = "Record not found"
        elif status in (400, 422):
            details = body
            if isinstance(body, dict):
                details = provider_error_to_message(body.get("errors") or body)
            error_msg = f"Validation error: {details}"
        elif status == 429:
            error_msg = "Too many requests, rate limit reached"
        elif SUCCESS_STATUSES[0] <= status <= SUCCESS_STATUSES[-1]:
            error_msg = f"Unexpected HTTP {status}"
        else:
            error_msg = f"API error (HTTP {status})"

        logger.error(f"{self.KIND.value} {operation} failed with HTTP {status}: {body}")
        raise ProviderApiError(f"{error_msg} [{operation}]", status=status, body=body, operation=operation)


class ZenodoClient(ProviderClient):
    """Client for the Zenodo deposition API."""

    KIND = ProviderKind.ZENODO

    def collection_url(self) -> str:
        return f"{self.base_url}/deposit/depositions"

    def record_url(self, record_id: str) -> str:
        return f"{self.collection_url()}/{record_id}"

    def update_url(self, record_id: str) -> str:
        return self.record_url(record_id)

    def publish_url(self, record_id: str) -> str:
        return f"{self.record_url(record_id)}/actions/publish"

    def new_version_url(self, record_id: str) -> str:
        return f"{self.record_url(record_id)}/actions/newversion"

    def upload_target(self, raw: Dict[str, Any]) -> str:
        """
        Return the bucket URL of a deposition.

        Raises:
            WorkflowStateError: If the deposition has neither bucket nor files link
        """
        links = raw.get("links") or {}
        target = links.get("bucket") or links.get("files")
        if not target:
            raise WorkflowStateError("Upload target not found in deposit links")
        return target

    def new_version_id(self, raw: Dict[str, Any]) -> Optional[str]:
        """The new draft is linked as ``latest_draft``; fall back to the returned id."""
        latest_draft = (raw.get("links") or {}).get("latest_draft")
        if latest_draft:
            return latest_draft.rstrip('/').rsplit('/', 1)[-1]
        return super().new_version_id(raw)

    def edit_url(self, raw: Dict[str, Any]) -> Optional[str]:
        return (raw.get("links") or {}).get("edit")

    def requires_unlock(self, published: bool) -> bool:
        return published

    def upload_file(self, target: str, filename: str, content: bytes) -> Dict[str, Any]:
        """Upload a file with a single PUT to the deposition bucket."""
        logger.info(f"Uploading {filename} ({len(content)} bytes) to Zenodo bucket")
        return self._request(
            "PUT",
            f"{target.rstrip('/')}/{quote(filename)}",
            operation="upload",
            data=content,
            headers={"Content-Type": "application/octet-stream"},
            timeout=self.SUBMIT_TIMEOUT
        )

    def unlock_for_edit(self, edit_url: str) -> Dict[str, Any]:
        """Unlock a published deposition so its metadata can be changed."""
        logger.info(f"Unlocking Zenodo deposition for edit: {edit_url}")
        return self._request(
            "POST",
            edit_url,
            operation="edit",
            json={},
            timeout=self.SUBMIT_TIMEOUT
        )


class InvenioClient(ProviderClient):
    """Client for the InvenioRDM records and drafts API."""

    KIND = ProviderKind.INVENIO

    def collection_url(self) -> str:
        return f"{self.base_url}/records"

    def record_url(self, record_id: str) -> str:
        return f"{self.collection_url()}/{record_id}"

    def update_url(self, record_id: str) -> str:
        return f"{self.record_url(record_id)}/draft"

    def publish_url(self, record_id: str) -> str:
        return f"{self.record_url(record_id)}/draft/actions/publish"

    def new_version_url(self, record_id: str) -> str:
        return f"{self.record_url(record_id)}/versions"

    def files_url(self, record_id: str) -> str:
        return f"{self.record_url(record_id)}/draft/files"

    def upload_target(self, raw: Dict[str, Any]) -> str:
        """Files are addressed through the record id of the draft."""
        record_id = raw.get("id")
        if record_id is None:
            raise WorkflowStateError("Record id missing in InvenioRDM response")
        return str(record_id)

    def upload_file(self, target: str, filename: str, content: bytes) -> Dict[str, Any]:
        """
        Upload a file in three steps: register, send content, commit.

        A failure after the first step leaves the registered file uncommitted
        in the draft; nothing is rolled back.
        """
        file_url = f"{self.files_url(target)}/{quote(filename)}"
        logger.info(f"Uploading {filename} ({len(content)} bytes) to InvenioRDM draft {target}")

        self._request(
            "POST",
            self.files_url(target),
            operation="upload_init",
            expected=(201,),
            json=[{"key": filename}]
        )
        try:
            self._request(
                "PUT",
                f"{file_url}/content",
                operation="upload_content",
                expected=(200,),
                data=content,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.SUBMIT_TIMEOUT
            )
            return self._request(
                "POST",
                f"{file_url}/commit",
                operation="upload_commit",
                expected=(200,)
            )
        except (ProviderApiError, TransportError):
            logger.warning(f"File {filename} left uncommitted in InvenioRDM draft {target}")
            raise


def create_provider_client(
    kind: ProviderKind,
    access_token: str,
    config: Optional[RuntimeConfig] = None
) -> ProviderClient:
    """
    Create the client for a provider kind.

    Args:
        kind: Provider kind returned by the credential lookup
        access_token: Bearer token
        config: Runtime configuration (default: read from environment)

    Returns:
        ZenodoClient or InvenioClient
    """
    config = config or load_config()
    kind = ProviderKind(kind)

    if kind == ProviderKind.ZENODO:
        return ZenodoClient(access_token, config.zenodo_base_url, config.publisher_name)
    return InvenioClient(access_token, config.invenio_api_url, config.publisher_name)
