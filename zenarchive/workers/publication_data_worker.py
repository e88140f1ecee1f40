"""Worker for loading an author's OpenAlex publication summary."""

import logging

from PySide6.QtCore import QObject, Signal

from zenarchive.api.openalex_client import OpenAlexClient
from zenarchive.utils.identifiers import is_valid_orcid


logger = logging.getLogger(__name__)


class PublicationDataWorker(QObject):
    """Fetches author data, work counts and highlight publications for one ORCID iD."""

    # Signals
    data_loaded = Signal(dict)  # combined OpenAlex data
    error = Signal(str)         # Error message
    finished = Signal()

    def __init__(self, orcid: str, openalex_client: OpenAlexClient = None):
        super().__init__()
        self.orcid = orcid
        self.openalex_client = openalex_client or OpenAlexClient()

    def run(self):
        """Fetch the data and emit it."""
        try:
            if not is_valid_orcid(self.orcid):
                self.error.emit(f"Invalid ORCID iD: {self.orcid}")
                return

            logger.info(f"Loading OpenAlex data for {self.orcid}")
            data = self.openalex_client.fetch_complete_data(self.orcid)
            self.data_loaded.emit(data)
        finally:
            self.finished.emit()
