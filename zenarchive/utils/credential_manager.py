"""
Credential Manager for ZenArchive.

Stores per-user Zenodo access tokens in the system keyring. Which users have
linked a Zenodo account is tracked in a JSON file, while the tokens themselves
only live in the keyring. Users without a linked account fall back to the
instance-wide InvenioRDM token from the environment.
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from zenarchive.errors import CredentialError
from zenarchive.models import ProviderKind
from zenarchive.utils.runtime_config import RuntimeConfig, load_config


logger = logging.getLogger(__name__)


@dataclass
class TokenAccount:
    """A user's linked provider account (the token itself is in the keyring)."""

    user_id: str
    provider: str  # "zenodo" or "invenio"
    created_at: str
    last_modified: str

    def __post_init__(self):
        """Validate provider after initialization."""
        if self.provider not in [kind.value for kind in ProviderKind]:
            raise ValueError(f"Invalid provider: {self.provider}. Must be 'zenodo' or 'invenio'.")

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'TokenAccount':
        """Create instance from dictionary."""
        return cls(**data)


class CredentialManager:
    """
    Looks up the access token a user publishes with.

    Uses the system keyring for token storage and a JSON file for the list
    of linked accounts.
    """

    SERVICE_NAME = "ZenArchive_Zenodo"
    METADATA_FILE = "accounts.json"

    def __init__(self, config: Optional[RuntimeConfig] = None, metadata_path: Optional[Path] = None):
        """
        Initialize the manager and load linked accounts.

        Args:
            config: Runtime configuration (default: read from environment)
            metadata_path: Location of the accounts file (default: ~/.config/zenarchive)
        """
        self.config = config or load_config()
        self.metadata_path = Path(metadata_path) if metadata_path else self._get_metadata_path()
        self.accounts: Dict[str, TokenAccount] = {}

        self._load_metadata()
        logger.info(f"CredentialManager initialized with {len(self.accounts)} linked accounts")

    def save_token(self, user_id: str, token: str, provider: str = ProviderKind.ZENODO.value):
        """
        Store a user's access token.

        Raises:
            ValueError: If user id or token is empty
            CredentialError: If the keyring rejects the token
        """
        if not user_id or not str(user_id).strip():
            raise ValueError("User id cannot be empty")
        if not token or not token.strip():
            raise ValueError("Token cannot be empty")

        user_id = str(user_id)
        try:
            keyring.set_password(self.SERVICE_NAME, user_id, token.strip())
        except KeyringError as e:
            logger.error(f"Failed to store token in keyring: {e}")
            raise CredentialError(f"Failed to store token: {e}")

        now = datetime.now().isoformat()
        existing = self.accounts.get(user_id)
        self.accounts[user_id] = TokenAccount(
            user_id=user_id,
            provider=ProviderKind(provider).value,
            created_at=existing.created_at if existing else now,
            last_modified=now
        )
        self._save_metadata()
        logger.info(f"Saved {provider} token for user {user_id}")

    def delete_token(self, user_id: str) -> bool:
        """
        Remove a user's linked account and token.

        Returns:
            True if an account was removed, False if none was linked
        """
        user_id = str(user_id)
        if user_id not in self.accounts:
            logger.warning(f"Attempted to delete token of unlinked user: {user_id}")
            return False

        try:
            keyring.delete_password(self.SERVICE_NAME, user_id)
        except PasswordDeleteError:
            logger.warning(f"No token in keyring for user {user_id}")

        del self.accounts[user_id]
        self._save_metadata()
        logger.info(f"Deleted token for user {user_id}")
        return True

    def has_token(self, user_id: str) -> bool:
        """Return True if the user has a linked account."""
        return str(user_id) in self.accounts

    def get_user_token(self, user_id: str) -> Tuple[str, ProviderKind]:
        """
        Return the token and provider a user publishes with.

        Args:
            user_id: Internal user id

        Returns:
            Tuple of (access_token, provider_kind)

        Raises:
            CredentialError: If the linked account has no usable token, or the
                user has no account and no instance token is configured
        """
        user_id = str(user_id)
        account = self.accounts.get(user_id)

        if account is not None:
            token = keyring.get_password(self.SERVICE_NAME, user_id)
            if not token:
                logger.error(f"Linked account of user {user_id} has no token")
                raise CredentialError("Invalid Zenodo credentials, please reconnect your account")
            return token, ProviderKind(account.provider)

        if self.config.invenio_token:
            logger.debug(f"Using instance InvenioRDM token for user {user_id}")
            return self.config.invenio_token, ProviderKind.INVENIO

        raise CredentialError("No Zenodo credentials found, please connect your account")

    def _get_metadata_path(self) -> Path:
        """Return ~/.config/zenarchive/accounts.json, creating the directory."""
        directory = Path.home() / ".config" / "zenarchive"
        directory.mkdir(parents=True, exist_ok=True)
        return directory / self.METADATA_FILE

    def _load_metadata(self):
        """Load linked accounts from the JSON file."""
        if not self.metadata_path.exists():
            logger.info("No existing accounts file found, starting fresh")
            return

        try:
            with open(self.metadata_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse accounts file: {e}")
            raise CredentialError(f"Corrupted accounts file: {e}")

        for user_id, account_dict in data.get('accounts', {}).items():
            try:
                self.accounts[user_id] = TokenAccount.from_dict(account_dict)
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to load account {user_id}: {e}")

    def _save_metadata(self):
        """Write linked accounts to the JSON file."""
        data = {
            'accounts': {
                user_id: account.to_dict()
                for user_id, account in self.accounts.items()
            }
        }
        self.metadata_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.metadata_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved accounts to {self.metadata_path}")
