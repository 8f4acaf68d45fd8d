"""Apify actor client - starts an Instagram scraper run and reads its dataset."""

from dataclasses import dataclass
from typing import Any

from apify_client import ApifyClientAsync

from igsnap.exceptions import NotConfiguredError, RemoteJobError, TransientFetchError

INSTAGRAM_BASE_URL = "https://www.instagram.com"


@dataclass
class JobHandle:
    """Identifies a finished (or running) actor run."""

    run_id: str
    dataset_id: str
    status: str | None = None


class ApifyJobClient:
    """
    Thin wrapper around the Apify actor API.

    Example:
        client = ApifyJobClient(token)
        handle = await client.submit("natgeo")
        records = await client.fetch(handle)
    """

    def __init__(
        self,
        token: str | None,
        actor_id: str = "apify/instagram-scraper",
        results_type: str = "details",
        results_limit: int = 100,
        wait_secs: int | None = None,
        client: ApifyClientAsync | None = None,
    ):
        """
        Args:
            token: Apify API token
            actor_id: Actor to run
            results_type: Actor ``resultsType`` ("details" or "posts")
            results_limit: Maximum number of results the actor returns
            wait_secs: How long ``submit`` waits for the run, None waits until it finishes
            client: Preconfigured ApifyClientAsync, mainly for tests
        """
        if client is None and not token:
            raise NotConfiguredError("APIFY_API_TOKEN is not set")

        self.actor_id = actor_id
        self.results_type = results_type
        self.results_limit = results_limit
        self.wait_secs = wait_secs
        self._client = client or ApifyClientAsync(token)

    def build_input(self, username: str) -> dict[str, Any]:
        """Actor input for a single profile."""
        return {
            "directUrls": [f"{INSTAGRAM_BASE_URL}/{username}/"],
            "resultsType": self.results_type,
            "resultsLimit": self.results_limit,
            "searchType": "user",
            "searchLimit": 1,
        }

    async def submit(self, username: str) -> JobHandle:
        """
        Start an actor run for one username and wait for it.

        Raises:
            RemoteJobError: If the run could not be started or has no dataset
        """
        try:
            run = await self._client.actor(self.actor_id).call(
                run_input=self.build_input(username),
                wait_secs=self.wait_secs,
            )
        except Exception as e:
            raise RemoteJobError(f"Actor run failed to start: {e}") from e

        if not run or not run.get("defaultDatasetId"):
            raise RemoteJobError("Actor run returned no dataset")

        return JobHandle(
            run_id=run.get("id", ""),
            dataset_id=run["defaultDatasetId"],
            status=run.get("status"),
        )

    async def fetch(self, handle: JobHandle) -> list[dict[str, Any]]:
        """
        List the dataset items of a run.

        The list may be incomplete while the run is still going.

        Raises:
            TransientFetchError: On any API or network failure
        """
        try:
            page = await self._client.dataset(handle.dataset_id).list_items(clean=True)
        except Exception as e:
            raise TransientFetchError(f"Dataset fetch failed: {e}") from e

        return [item for item in page.items if isinstance(item, dict)]
