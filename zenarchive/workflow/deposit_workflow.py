"""
Deposit workflow orchestration.

Drives a provider client through the publish, edit and new-version flows.
Every flow runs its steps one after another and stops at the first failure;
the raised error carries the name of the failed step (``error.step``) and the
deposit created so far (``error.deposit``). Nothing is rolled back: an
uploaded but uncommitted file or an unlocked but not republished record is
left as is, and re-running update and publish on it is safe.

This module is also the only place that knows where DOIs and record ids hide
in raw provider responses.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from zenarchive.api.provider_client import ProviderClient
from zenarchive.errors import ArchiveError, ValidationError, WorkflowStateError
from zenarchive.models import Creator, Deposit, DepositState, FileAttachment, ZenodoInfo
from zenarchive.utils.contributor_reconciler import creators_from_record, reconcile_creators
from zenarchive.utils.identifiers import extract_record_id, validate_orcid
from zenarchive.utils.metadata_normalizer import DOI_FIELDS, clean_for_submission
from zenarchive.utils.metadata_validator import ensure_valid


logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Raw response probing
# ----------------------------------------------------------------------

def _get_path(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def extract_doi(raw: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Extract the DOI URL from a provider response.

    Tries ``doi_url``, then ``pids.doi.identifier`` (InvenioRDM) and
    ``metadata.prereserve_doi.doi`` (Zenodo reservation).

    Returns:
        ``https://doi.org/...`` URL, or None if the response has no DOI
    """
    if not isinstance(raw, dict):
        return None
    if raw.get("doi_url"):
        return raw["doi_url"]
    doi = _get_path(raw, "pids", "doi", "identifier") or \
        _get_path(raw, "metadata", "prereserve_doi", "doi")
    return f"https://doi.org/{doi}" if doi else None


def extract_info(raw: Optional[Dict[str, Any]], namespace: str = "zenodo.") -> Optional[ZenodoInfo]:
    """
    Reconstruct DOI, record id and publication flag from a stored response.

    Args:
        raw: Raw provider response as persisted after publication
        namespace: Token that marks DOIs minted by the provider

    Returns:
        ZenodoInfo, or None for empty input
    """
    if not isinstance(raw, dict) or not raw:
        return None

    doi = raw.get("doi") or raw.get("doi_url") or _get_path(raw, "metadata", "prereserve_doi", "doi")

    record_id = None
    for key in ("id", "conceptrecid", "record_id"):
        if raw.get(key) is not None:
            record_id = str(raw[key])
            break
    if record_id is None:
        record_id = extract_record_id(doi)

    is_published = (
        raw.get("state") == "done"
        or raw.get("published") is not None
        or (doi is not None and namespace in str(doi))
    )
    return ZenodoInfo(doi=doi, record_id=record_id, is_published=is_published)


def is_published(raw: Dict[str, Any]) -> bool:
    """Return True if a record needs the published-record edit path."""
    # Zenodo drafts carry "doi": ""
    return raw.get("state") == "done" or raw.get("doi") not in (None, "")


def compute_state(raw: Dict[str, Any]) -> DepositState:
    """Derive the deposit state once from a raw provider response."""
    published = (
        is_published(raw)
        or raw.get("submitted") is True
        or raw.get("is_published") is True
        or raw.get("status") == "published"
    )
    # InvenioRDM drafts report is_latest false until they are published
    if _get_path(raw, "versions", "is_latest") is False and (
        published or _get_path(raw, "versions", "is_latest_draft") is not True
    ):
        return DepositState.SUPERSEDED
    return DepositState.PUBLISHED if published else DepositState.DRAFT


def ensure_record_id(info: Optional[ZenodoInfo]) -> ZenodoInfo:
    """
    Make sure the record id of a stored deposit is known.

    Raises:
        WorkflowStateError: If there is no stored deposit, or the id can
            neither be read nor parsed from the DOI
    """
    if info is None:
        raise WorkflowStateError("Missing deposit information")
    if info.record_id is None:
        info.record_id = extract_record_id(info.doi)
    if info.record_id is None:
        raise WorkflowStateError("Missing deposit ID - cannot determine which deposit to update")
    return info


# ----------------------------------------------------------------------
# Orchestrator
# ----------------------------------------------------------------------

@dataclass
class WorkflowResult:
    """Outcome of a workflow run."""

    deposit: Deposit
    doi: Optional[str] = None
    files: List[Dict[str, Any]] = field(default_factory=list)
    published: bool = False
    completed_steps: List[str] = field(default_factory=list)
    publish_error: Optional[ArchiveError] = None
    superseded: Optional[Deposit] = None

    @property
    def is_success(self) -> bool:
        """Return True if no step failed (publishing may have been skipped)."""
        return self.publish_error is None

    def archival_record(self) -> Dict[str, Any]:
        """Return the ``{doi, raw}`` pair the caller stores with the archived thread."""
        return {"doi": self.doi, "raw": self.deposit.raw}


class DepositWorkflow:
    """
    Runs deposit workflows against one provider client.

    Usage:
        workflow = DepositWorkflow(create_provider_client(kind, token))
        result = workflow.publish_new(creators, metadata, attachments)
    """

    def __init__(
        self,
        client: ProviderClient,
        on_step: Optional[Callable[[str], None]] = None
    ):
        """
        Initialize the workflow.

        Args:
            client: Provider client (Zenodo or InvenioRDM)
            on_step: Called with the step name after each completed step
        """
        self.client = client
        self.on_step = on_step

    # Steps -------------------------------------------------------------

    def _run_step(
        self,
        completed: List[str],
        step: str,
        func: Callable,
        *args,
        deposit: Optional[Deposit] = None,
        **kwargs
    ):
        """Run one named step, tagging any error with the step and the deposit so far."""
        logger.info(f"Step '{step}' started")
        try:
            result = func(*args, **kwargs)
        except ArchiveError as e:
            e.step = e.step or step
            if e.deposit is None:
                e.deposit = deposit
            logger.error(f"Step '{step}' failed: {e}")
            raise
        completed.append(step)
        if self.on_step is not None:
            self.on_step(step)
        return result

    def _deposit_from(self, raw: Dict[str, Any], deposit: Optional[Deposit] = None) -> Deposit:
        """Build a Deposit from a raw response, or refresh an existing one."""
        record_id = raw.get("id")
        if deposit is None:
            deposit = Deposit(provider=self.client.KIND)
        if record_id is not None:
            deposit.record_id = str(record_id)
        deposit.raw = raw
        deposit.state = compute_state(raw)
        deposit.metadata = raw.get("metadata") or deposit.metadata
        if deposit.state == DepositState.PUBLISHED:
            deposit.assign_doi(extract_doi(raw))
        return deposit

    def _prepare(
        self,
        creators: List[Creator],
        metadata: Dict[str, Any],
        attachments: Iterable[Any] = (),
        validate: bool = True
    ) -> Tuple[List[Creator], Dict[str, Any], List[Tuple[str, bytes]]]:
        """Validate input and read attachments before any request is sent."""
        visible = [c for c in creators if c.is_visible]
        if validate:
            ensure_valid(metadata, creators)

        files = []
        for attachment in FileAttachment.normalize(attachments):
            try:
                files.append((attachment.resolve_filename(), attachment.read()))
            except (FileNotFoundError, TypeError) as e:
                raise ValidationError({"files": str(e)})

        return visible, clean_for_submission(metadata), files

    def _upload_all(self, deposit: Deposit, files: List[Tuple[str, bytes]]) -> List[Dict[str, Any]]:
        """Upload files one by one to the deposit, stopping at the first failure."""
        deposit.upload_target = self.client.upload_target(deposit.raw)
        results = []
        for filename, content in files:
            results.append(self.client.upload_file(deposit.upload_target, filename, content))
        return results

    @staticmethod
    def finalize_creators(
        stored_record: Optional[Dict[str, Any]],
        participants: Iterable[Creator] = (),
        submitted: Iterable[Creator] = ()
    ) -> List[Creator]:
        """
        Build the creator list for a submission.

        Creators already stored with the record come first, thread
        participants and form edits are merged into them.
        """
        return reconcile_creators(creators_from_record(stored_record), participants, submitted)

    # Flows -------------------------------------------------------------

    def publish_new(
        self,
        creators: List[Creator],
        metadata: Dict[str, Any],
        attachments: Iterable[Any] = (),
        auto_publish: bool = True
    ) -> WorkflowResult:
        """
        Create a draft, upload attachments and publish it.

        A failed publish does not fail the workflow: the result keeps the
        draft with ``published=False`` and the error in ``publish_error``.

        Args:
            creators: Reconciled creators in author order
            metadata: Deposit metadata
            attachments: Files as FileAttachment, (filename, source) or source
            auto_publish: Publish right after the upload

        Returns:
            WorkflowResult

        Raises:
            ValidationError: Before any request, on invalid input
            ProviderApiError, TransportError: From create or upload, tagged with the step
        """
        completed: List[str] = []
        visible, cleaned, files = self._run_step(
            completed, "validate", self._prepare, creators, metadata, attachments
        )

        raw = self._run_step(completed, "create", self.client.create_draft, visible, cleaned)
        deposit = self._deposit_from(raw)
        logger.info(f"Draft {deposit.record_id} created")

        file_infos = self._run_step(completed, "upload", self._upload_all, deposit, files, deposit=deposit)

        result = WorkflowResult(deposit=deposit, files=file_infos)

        if auto_publish:
            try:
                published = self._run_step(
                    completed, "publish", self.client.publish, deposit.record_id, deposit=deposit
                )
            except ArchiveError as e:
                logger.error(f"Failed to publish deposit {deposit.record_id}, keeping draft: {e}")
                result.publish_error = e
            else:
                self._deposit_from(published, deposit)
                result.published = True
                result.doi = deposit.doi or extract_doi(published)

        result.completed_steps = list(completed)
        return result

    def edit_metadata(
        self,
        stored_record: Dict[str, Any],
        creators: List[Creator],
        metadata: Dict[str, Any],
        refresh: bool = True,
        validate: bool = True
    ) -> WorkflowResult:
        """
        Change the metadata of an existing deposit.

        Published Zenodo depositions are unlocked through their ``edit``
        link, updated and published again. Drafts and InvenioRDM records are
        updated directly.

        Args:
            stored_record: Raw provider response stored after publication
            creators: Reconciled creators
            metadata: New metadata
            refresh: Fetch the current record first (needed for the edit link)
            validate: Validate metadata and creators

        Returns:
            WorkflowResult with the updated deposit

        Raises:
            WorkflowStateError: If the record id is unknown or the edit link is missing
        """
        completed: List[str] = []
        info = self._run_step(completed, "resolve", ensure_record_id, extract_info(stored_record))
        visible, cleaned, _files = self._run_step(
            completed, "validate", self._prepare, creators, metadata, validate=validate
        )
        cleaned = {key: value for key, value in cleaned.items() if key not in DOI_FIELDS}

        current = stored_record
        if refresh:
            current = self._run_step(completed, "fetch", self.client.get_record, info.record_id)
        deposit = self._deposit_from(current)
        deposit.record_id = deposit.record_id or info.record_id

        published = is_published(current)
        result = WorkflowResult(deposit=deposit, doi=deposit.doi)

        if self.client.requires_unlock(published):
            edit_url = self.client.edit_url(current)
            if not edit_url:
                error = WorkflowStateError("Edit URL not found in deposit links", step="edit")
                error.deposit = deposit
                logger.error(f"Record {info.record_id} is published but has no edit link")
                raise error
            self._run_step(completed, "edit", self.client.unlock_for_edit, edit_url, deposit=deposit)
            updated = self._run_step(
                completed, "update", self.client.update_metadata, deposit.record_id, visible, cleaned, deposit=deposit
            )
            self._deposit_from(updated, deposit)
            republished = self._run_step(
                completed, "publish", self.client.publish, deposit.record_id, deposit=deposit
            )
            self._deposit_from(republished, deposit)
            result.published = True
            logger.info(f"Record {deposit.record_id} updated and republished via edit action")
        else:
            updated = self._run_step(
                completed, "update", self.client.update_metadata, deposit.record_id, visible, cleaned, deposit=deposit
            )
            self._deposit_from(updated, deposit)
            result.published = deposit.state == DepositState.PUBLISHED
            logger.info(f"Record {deposit.record_id} metadata updated directly")

        result.doi = deposit.doi or info.doi
        result.completed_steps = list(completed)
        return result

    def new_version(
        self,
        stored_record: Dict[str, Any],
        creators: List[Creator],
        metadata: Dict[str, Any],
        attachments: Iterable[Any] = ()
    ) -> WorkflowResult:
        """
        Publish a new version of a deposit.

        Creates the version draft, writes the metadata, uploads all
        attachments again and publishes. The new version gets its own DOI;
        the previous deposit is returned as ``superseded``.

        Raises:
            WorkflowStateError: If the record id is unknown or no DOI comes back
        """
        completed: List[str] = []
        info = self._run_step(completed, "resolve", ensure_record_id, extract_info(stored_record))
        visible, cleaned, files = self._run_step(
            completed, "validate", self._prepare, creators, metadata, attachments
        )

        previous = self._deposit_from(stored_record)
        previous.record_id = previous.record_id or info.record_id

        raw = self._run_step(
            completed, "new_version", self.client.create_new_version, info.record_id, deposit=previous
        )
        new_id = self.client.new_version_id(raw)
        if new_id is None:
            raise WorkflowStateError("New version response has no record id", step="new_version")
        deposit = Deposit(provider=self.client.KIND, record_id=new_id, raw=raw)
        logger.info(f"New version draft {new_id} created from record {info.record_id}")

        updated = self._run_step(
            completed, "update", self.client.update_metadata, new_id, visible, cleaned, deposit=deposit
        )
        deposit.raw = updated or raw
        deposit.metadata = updated.get("metadata") or cleaned

        file_infos = self._run_step(completed, "upload", self._upload_all, deposit, files, deposit=deposit)

        published = self._run_step(completed, "publish", self.client.publish, new_id, deposit=deposit)
        deposit.raw = published
        deposit.state = DepositState.PUBLISHED
        doi = extract_doi(published)
        if doi is None:
            error = WorkflowStateError("No DOI found in published new version", step="publish")
            error.deposit = deposit
            raise error
        deposit.assign_doi(doi)

        previous.state = DepositState.SUPERSEDED
        return WorkflowResult(
            deposit=deposit,
            doi=doi,
            files=file_infos,
            published=True,
            completed_steps=list(completed),
            superseded=previous
        )

    def link_orcid(
        self,
        stored_record: Dict[str, Any],
        creators: List[Creator],
        user_id: Any,
        name: Optional[str],
        orcid: str
    ) -> WorkflowResult:
        """
        Add a co-author's ORCID iD to a published deposit.

        The creator whose id equals ``user_id`` or whose name equals ``name``
        gets the ORCID, then the metadata is rewritten through
        ``edit_metadata()``.

        Raises:
            InvalidOrcidFormat: If the ORCID iD is malformed
            ValidationError: If no creator matches
        """
        validate_orcid(orcid)

        matched = False
        updated = []
        for creator in creators:
            if (user_id is not None and creator.id == user_id) or (name and creator.name == name):
                creator = replace(creator, orcid=orcid)
                matched = True
            updated.append(creator)

        if not matched:
            raise ValidationError({"creators": f"No creator found for {name or user_id}"})

        metadata = dict(stored_record.get("metadata") or {})
        metadata.pop("creators", None)
        logger.info(f"Linking ORCID {orcid} to creator {name or user_id}")
        return self.edit_metadata(stored_record, updated, metadata, validate=False)
