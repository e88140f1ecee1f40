"""Worker for running deposit workflows in the background."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal, QThread

from zenarchive.api.provider_client import create_provider_client
from zenarchive.errors import ArchiveError, user_message
from zenarchive.models import Creator
from zenarchive.utils.contributor_reconciler import creators_from_participants
from zenarchive.utils.credential_manager import CredentialManager
from zenarchive.utils.notifications import find_coauthors_to_notify
from zenarchive.utils.runtime_config import RuntimeConfig, load_config
from zenarchive.workflow.deposit_workflow import DepositWorkflow, WorkflowResult


logger = logging.getLogger(__name__)


MODES = ("publish", "edit", "new_version", "link_orcid")


class DepositWorker(QObject):
    """
    Worker that publishes, edits or versions one deposit.

    Looks up the user's token, reconciles the creator list and runs the
    matching workflow, reporting each completed step.
    """

    # Signals
    progress = Signal(str)                    # Progress message
    step_completed = Signal(str)              # Workflow step name
    deposit_published = Signal(str, dict)     # DOI, raw provider response
    coauthors_found = Signal(list)            # Creator dicts without ORCID
    error_occurred = Signal(str, str)         # failed step, user message
    finished = Signal(bool)                   # success

    def __init__(
        self,
        user_id: Any,
        mode: str,
        creators: Iterable[Creator] = (),
        metadata: Optional[Dict[str, Any]] = None,
        attachments: Iterable[Any] = (),
        stored_record: Optional[Dict[str, Any]] = None,
        participants: Iterable[Dict[str, Any]] = (),
        link_user_id: Any = None,
        link_name: Optional[str] = None,
        link_orcid: Optional[str] = None,
        credential_manager: Optional[CredentialManager] = None,
        config: Optional[RuntimeConfig] = None,
        auto_publish: bool = True
    ):
        """
        Initialize the worker.

        Args:
            user_id: Internal id of the publishing user
            mode: One of "publish", "edit", "new_version", "link_orcid"
            creators: Creators submitted by the form
            metadata: Deposit metadata
            attachments: Files to upload (publish and new_version)
            stored_record: Raw response stored with the archived thread
            participants: Thread participants (dicts with id, name, orcid)
            link_user_id: Co-author to add an ORCID to (link_orcid)
            link_name: Display name of that co-author (link_orcid)
            link_orcid: ORCID iD to add (link_orcid)
            credential_manager: Token lookup (creates default if None)
            config: Runtime configuration (default: read from environment)
            auto_publish: Publish new deposits right away

        Raises:
            ValueError: If the mode is unknown
        """
        super().__init__()

        if mode not in MODES:
            raise ValueError(f"Unknown deposit mode: {mode}")

        self.user_id = user_id
        self.mode = mode
        self.creators = list(creators)
        self.metadata = dict(metadata or {})
        self.attachments = list(attachments)
        self.stored_record = stored_record
        self.participants = list(participants)
        self.link_user_id = link_user_id
        self.link_name = link_name
        self.link_orcid = link_orcid
        self.config = config
        self.credential_manager = credential_manager
        self.auto_publish = auto_publish
        self.result: Optional[WorkflowResult] = None
        self._is_running = False

    def run(self):
        """Run the workflow and emit its outcome."""
        self._is_running = True
        success = False

        try:
            config = self.config or load_config()
            credentials = self.credential_manager or CredentialManager(config)

            self.progress.emit("Looking up credentials...")
            token, kind = credentials.get_user_token(self.user_id)
            client = create_provider_client(kind, token, config)

            if not self._is_running:
                logger.info("Deposit cancelled before the first request")
                self.progress.emit("Cancelled")
                return

            creators = DepositWorkflow.finalize_creators(
                self.stored_record,
                creators_from_participants(self.participants),
                self.creators
            )
            logger.info(f"Running {self.mode} workflow for user {self.user_id} with {len(creators)} creators")

            workflow = DepositWorkflow(client, on_step=self.step_completed.emit)
            self.progress.emit(f"Running {self.mode} on {kind.value}...")
            self.result = self._run_mode(workflow, creators)

            if self.result.publish_error is not None:
                error = self.result.publish_error
                self.error_occurred.emit(error.step or "publish", user_message(error))
                return

            if self.result.published and self.result.doi:
                self.deposit_published.emit(self.result.doi, self.result.deposit.raw)
                if self.mode == "publish":
                    coauthors = find_coauthors_to_notify(self.user_id, creators)
                    if coauthors:
                        self.coauthors_found.emit([c.to_dict() for c in coauthors])
            success = True

        except ArchiveError as e:
            logger.error(f"{self.mode} workflow failed at step '{e.step}': {e}")
            self.error_occurred.emit(e.step or "", user_message(e))

        except Exception as e:
            logger.error(f"Unexpected error in {self.mode} workflow: {e}", exc_info=True)
            self.error_occurred.emit("", f"Unexpected error: {e}")

        finally:
            self._is_running = False
            self.finished.emit(success)

    def _run_mode(self, workflow: DepositWorkflow, creators: List[Creator]) -> WorkflowResult:
        if self.mode == "publish":
            return workflow.publish_new(creators, self.metadata, self.attachments, self.auto_publish)
        if self.mode == "edit":
            return workflow.edit_metadata(self.stored_record, creators, self.metadata)
        if self.mode == "new_version":
            return workflow.new_version(self.stored_record, creators, self.metadata, self.attachments)
        return workflow.link_orcid(
            self.stored_record, creators, self.link_user_id, self.link_name, self.link_orcid
        )

    def stop(self):
        """Request the worker to stop (the running workflow finishes its current step)."""
        logger.info("Stop requested for deposit worker")
        self._is_running = False


class DepositThread(QThread):
    """
    Thread wrapper for DepositWorker.

    Usage:
        thread = DepositThread(user_id, "publish", creators=creators, metadata=metadata)
        thread.worker.deposit_published.connect(on_published)
        thread.worker.finished.connect(on_finished)
        thread.start()
    """

    def __init__(self, *args, parent=None, **kwargs):
        super().__init__(parent)
        self._worker = DepositWorker(*args, **kwargs)

    @property
    def worker(self):
        """Access the worker for signal connections."""
        return self._worker

    def run(self):
        """Run the worker in this thread's context."""
        self._worker.run()

    def stop(self):
        self._worker.stop()
