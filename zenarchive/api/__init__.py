"""API clients for deposit providers, ORCID and OpenAlex."""

from zenarchive.api.provider_client import (
    ProviderClient,
    ZenodoClient,
    InvenioClient,
    create_provider_client,
)
from zenarchive.api.orcid_client import OrcidClient
from zenarchive.api.openalex_client import OpenAlexClient

__all__ = [
    'ProviderClient',
    'ZenodoClient',
    'InvenioClient',
    'create_provider_client',
    'OrcidClient',
    'OpenAlexClient',
]
