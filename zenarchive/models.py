"""Data types for deposits, creators and file attachments."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from zenarchive.errors import WorkflowStateError


logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Supported registry API shapes."""
    ZENODO = "zenodo"
    INVENIO = "invenio"


class DepositState(Enum):
    """Lifecycle state of a remote deposit."""
    DRAFT = "draft"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


def is_blank(value: Any) -> bool:
    """Return True for values that count as "not provided"."""
    return value is None or value == ""


@dataclass
class Creator:
    """A contributor of a deposit."""

    name: str
    id: Optional[Any] = None
    orcid: Optional[str] = None
    affiliation: Any = None  # str, {"name": ...} or a list of either
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    hidden: bool = False  # soft delete, keeps form indices stable
    extra: Dict[str, Any] = field(default_factory=dict)

    FIELDS = ("name", "id", "orcid", "affiliation", "given_name", "family_name")

    @property
    def is_visible(self) -> bool:
        """Return True if the creator counts as an author."""
        return not self.hidden and bool((self.name or "").strip())

    def identity_key(self) -> Optional[Tuple[str, Any]]:
        """
        Return the identity used to detect duplicate people.

        ORCID wins over the internal user id, which wins over the display name.
        """
        if not is_blank(self.orcid):
            return ("orcid", self.orcid)
        if not is_blank(self.id):
            return ("id", self.id)
        if not is_blank(self.name):
            return ("name", self.name)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Creator':
        """Create a creator from a raw dict (form data, stored record, participant)."""
        data = dict(data)
        hidden = data.pop("_hidden", None)
        if hidden is None:
            hidden = data.pop("hidden", False)
        else:
            data.pop("hidden", None)
        if "affiliation" not in data and "affiliations" in data:
            data["affiliation"] = data.pop("affiliations")

        known = {key: data.pop(key) for key in cls.FIELDS if key in data}
        return cls(
            name=known.get("name") or "",
            id=known.get("id"),
            orcid=known.get("orcid"),
            affiliation=known.get("affiliation"),
            given_name=known.get("given_name"),
            family_name=known.get("family_name"),
            hidden=hidden in (True, "true", "on", 1),
            extra=data
        )

    def to_dict(self, include_internal: bool = True) -> Dict[str, Any]:
        """
        Convert to a plain dict, leaving out empty values.

        Args:
            include_internal: Keep the internal user id and hidden flag.
                Provider payloads are built without them.
        """
        result = {key: value for key, value in self.extra.items() if not is_blank(value)}
        for key in self.FIELDS:
            if key == "id" and not include_internal:
                continue
            value = getattr(self, key)
            if not is_blank(value) and value != []:
                result[key] = value
        if include_internal and self.hidden:
            result["_hidden"] = True
        return result


@dataclass
class FileAttachment:
    """A file to upload: a filename plus a path, bytes or a stream of chunks."""

    filename: Optional[str]
    source: Any

    STREAM_FILENAME = "stream_upload"

    @property
    def is_path(self) -> bool:
        return isinstance(self.source, (str, Path))

    def resolve_filename(self) -> str:
        """Return the name the file gets at the provider."""
        if self.filename:
            return self.filename
        if self.is_path:
            return Path(self.source).name
        return self.STREAM_FILENAME

    def read(self) -> bytes:
        """
        Return the full payload.

        Raises:
            FileNotFoundError: If the source is a path that does not exist
            TypeError: If the source is neither a path, bytes nor an iterable
        """
        if self.is_path:
            path = Path(self.source)
            if not path.is_file():
                raise FileNotFoundError(f"File to be uploaded not found: {path}")
            return path.read_bytes()

        if isinstance(self.source, (bytes, bytearray)):
            return bytes(self.source)

        if isinstance(self.source, Iterable):
            chunks = []
            for chunk in self.source:
                chunks.append(chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk))
            return b"".join(chunks)

        raise TypeError(f"Invalid file input: {type(self.source).__name__}")

    @classmethod
    def normalize(
        cls,
        files: Optional[Iterable[Union['FileAttachment', Tuple[Optional[str], Any], Any]]]
    ) -> List['FileAttachment']:
        """
        Turn a loose file list into attachments.

        Accepts attachments, ``(filename, source)`` tuples and bare sources.
        ``None`` entries and tuples without a source are dropped.
        """
        attachments = []
        for entry in files or []:
            if entry is None:
                continue
            if isinstance(entry, FileAttachment):
                attachment = entry
            elif isinstance(entry, tuple) and len(entry) == 2:
                attachment = cls(filename=entry[0], source=entry[1])
            else:
                attachment = cls(filename=None, source=entry)
            if attachment.source is None:
                logger.debug(f"Skipping attachment without content: {attachment.filename}")
                continue
            attachments.append(attachment)
        return attachments


@dataclass
class ZenodoInfo:
    """Identifiers reconstructed from a stored provider response."""
    doi: Optional[str]
    record_id: Optional[str]
    is_published: bool


@dataclass
class Deposit:
    """A remote record at a registry provider."""

    provider: ProviderKind
    record_id: Optional[str] = None
    state: DepositState = DepositState.DRAFT
    metadata: Dict[str, Any] = field(default_factory=dict)
    upload_target: Optional[str] = None
    doi: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def assign_doi(self, doi: Optional[str]):
        """
        Record the DOI of this deposit.

        Raises:
            WorkflowStateError: If the deposit already carries a different DOI
        """
        if doi is None:
            return
        if self.doi is not None and self.doi != doi:
            raise WorkflowStateError(
                f"Record {self.record_id} already has DOI {self.doi}, provider returned {doi}"
            )
        self.doi = doi
