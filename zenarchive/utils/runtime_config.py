"""Runtime configuration read from the environment (and an optional .env file)."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


ZENODO_API_URL = "https://zenodo.org/api"
ZENODO_SANDBOX_API_URL = "https://sandbox.zenodo.org/api"
ORCID_MEMBER_API_URL = "https://api.orcid.org/v3.0"
ORCID_SANDBOX_API_URL = "https://api.sandbox.orcid.org/v3.0"
DEFAULT_PUBLISHER_NAME = "Open Science Network"


@dataclass(frozen=True)
class RuntimeConfig:
    """Provider endpoints and defaults for one process."""

    zenodo_env: Optional[str] = None
    invenio_api_url: Optional[str] = None
    invenio_token: Optional[str] = None
    orcid_env: Optional[str] = None
    publisher_name: str = DEFAULT_PUBLISHER_NAME
    instance_url: str = ""

    @property
    def zenodo_base_url(self) -> str:
        """Zenodo API base, the sandbox when ZENODO_ENV=sandbox."""
        return ZENODO_SANDBOX_API_URL if self.zenodo_env == "sandbox" else ZENODO_API_URL

    @property
    def orcid_member_api_url(self) -> str:
        """ORCID member API base, the sandbox when ORCID_ENV=sandbox."""
        return ORCID_SANDBOX_API_URL if self.orcid_env == "sandbox" else ORCID_MEMBER_API_URL


def load_config(dotenv_path: Optional[str] = None) -> RuntimeConfig:
    """
    Build the runtime configuration.

    Values already present in the environment take precedence over the
    .env file.

    Args:
        dotenv_path: Explicit .env file (default: search upwards from cwd)

    Returns:
        RuntimeConfig
    """
    load_dotenv(dotenv_path)

    config = RuntimeConfig(
        zenodo_env=os.getenv('ZENODO_ENV'),
        invenio_api_url=(os.getenv('INVENIO_RDM_API_URL') or None),
        invenio_token=(os.getenv('INVENIO_RDM_PERSONAL_TOKEN') or None),
        orcid_env=os.getenv('ORCID_ENV'),
        publisher_name=os.getenv('ZENARCHIVE_PUBLISHER_NAME') or DEFAULT_PUBLISHER_NAME,
        instance_url=(os.getenv('ZENARCHIVE_INSTANCE_URL') or "").rstrip('/')
    )

    logger.info(
        f"Configuration loaded (Zenodo: {config.zenodo_base_url}, "
        f"InvenioRDM: {config.invenio_api_url or 'not configured'})"
    )
    return config
