"""OpenAlex API client for author and publication summaries."""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError, as_completed
from typing import Any, Dict, List, Optional

import requests


logger = logging.getLogger(__name__)


class OpenAlexAPIError(Exception):
    """Base exception for OpenAlex API errors."""
    pass


class NoPublicationsFound(OpenAlexAPIError):
    """Raised when an author has no matching works."""
    pass


class OpenAlexClient:
    """
    Read-only client for the OpenAlex API.

    All lookups are keyed by ORCID iD.
    """

    DEFAULT_ENDPOINT = "https://api.openalex.org"
    TIMEOUT = 10  # per request
    WAIT_TIMEOUT = 15  # for the combined fetch
    MAX_WORKERS = 3

    def __init__(self, endpoint: str = None):
        self.endpoint = (endpoint or self.DEFAULT_ENDPOINT).rstrip('/')

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = f"{self.endpoint}{path}"
        try:
            response = requests.get(url, params=params, timeout=self.TIMEOUT)
        except requests.exceptions.Timeout:
            logger.error(f"Timeout fetching {url}")
            raise OpenAlexAPIError(f"Timeout fetching {path}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error fetching {url}: {e}")
            raise OpenAlexAPIError(f"Request failed: {e}")

        if response.status_code != 200:
            logger.error(f"OpenAlex returned HTTP {response.status_code} for {url}")
            raise OpenAlexAPIError(f"API error (HTTP {response.status_code})")

        try:
            return response.json()
        except ValueError as e:
            raise OpenAlexAPIError(f"Invalid JSON from OpenAlex: {e}")

    @staticmethod
    def _works_filter(orcid: str) -> str:
        return f"authorships.author.orcid:{orcid}"

    def fetch_author(self, orcid: str) -> Dict[str, Any]:
        """Fetch the OpenAlex author record for an ORCID iD."""
        return self._get(f"/authors/orcid:{orcid}")

    def fetch_works_by_type(self, orcid: str) -> List[Dict[str, Any]]:
        """
        Count an author's works per type.

        Returns:
            List of ``{"display_name", "count"}`` sorted by count, highest first
        """
        data = self._get("/works", {"filter": self._works_filter(orcid), "group_by": "type"})
        works = [
            {
                "display_name": (group.get("key_display_name") or "").capitalize(),
                "count": group.get("count") or 0,
            }
            for group in data.get("group_by") or []
        ]
        works.sort(key=lambda item: -item["count"])
        return works

    def _fetch_single_work(self, orcid: str, sort: str) -> Dict[str, Any]:
        data = self._get(
            "/works",
            {"filter": self._works_filter(orcid), "sort": sort, "per-page": "1"}
        )
        results = data.get("results") or []
        if not results:
            raise NoPublicationsFound(f"No publications found for {orcid}")
        return results[0]

    def fetch_recent_publication(self, orcid: str) -> Dict[str, Any]:
        """Fetch the author's most recently published work."""
        return self._fetch_single_work(orcid, "publication_date:desc")

    def fetch_most_cited_publication(self, orcid: str) -> Dict[str, Any]:
        """Fetch the author's most cited work."""
        return self._fetch_single_work(orcid, "cited_by_count:desc")

    def fetch_complete_data(self, orcid: str) -> Dict[str, Any]:
        """
        Fetch all summaries for an author concurrently.

        The independent reads run in a small thread pool; results that fail
        or are not ready within WAIT_TIMEOUT fall back to defaults.

        Args:
            orcid: ORCID iD of the author

        Returns:
            Dict with author_data, works_by_type, recent_publication and
            most_cited_publication
        """
        lookups = {
            "author_data": (self.fetch_author, None),
            "works_by_type": (self.fetch_works_by_type, []),
            "recent_publication": (self.fetch_recent_publication, None),
            "most_cited_publication": (self.fetch_most_cited_publication, None),
        }
        results = {key: default for key, (_func, default) in lookups.items()}

        executor = ThreadPoolExecutor(max_workers=self.MAX_WORKERS)
        try:
            future_to_key = {
                executor.submit(func, orcid): key
                for key, (func, _default) in lookups.items()
            }
            try:
                for future in as_completed(future_to_key, timeout=self.WAIT_TIMEOUT):
                    key = future_to_key[future]
                    try:
                        results[key] = future.result()
                    except OpenAlexAPIError as e:
                        logger.warning(f"OpenAlex {key} unavailable for {orcid}: {e}")
            except TimeoutError:
                logger.warning(f"OpenAlex fetch for {orcid} exceeded {self.WAIT_TIMEOUT}s")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results
