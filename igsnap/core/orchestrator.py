"""Pipeline orchestrator - coordinates the remote job, normalization, relocation and storage."""

import asyncio
import re
from collections.abc import Mapping
from typing import Any

import httpx

from igsnap.config import ScraperConfig
from igsnap.core.matcher import ProfileMatcher, get_matcher, select_post_records
from igsnap.core.normalizer import normalize_posts, normalize_profile
from igsnap.core.relocator import MediaRelocator
from igsnap.core.remote import ApifyJobClient
from igsnap.exceptions import InvalidInputError, NotConfiguredError, PersistenceError
from igsnap.logging import configure_logging, get_logger
from igsnap.models.post import Post
from igsnap.models.profile import Profile
from igsnap.models.snapshot import ProfileSnapshot, SnapshotStatus, utcnow
from igsnap.storage.base import SnapshotStore
from igsnap.storage.factory import build_object_store, build_store, check_storage_config
from igsnap.storage.object_store import S3ObjectStore

USERNAME_RE = re.compile(r"^[a-z0-9._]{1,30}$")


def clean_username(username: str | None) -> str:
    """
    Normalize and validate an Instagram handle.

    Examples:
        " @NatGeo " -> "natgeo"

    Raises:
        InvalidInputError: If the handle is empty or malformed
    """
    if not isinstance(username, str) or not username.strip():
        raise InvalidInputError("Username is required")

    cleaned = username.strip().lstrip("@").lower()
    if not USERNAME_RE.match(cleaned):
        raise InvalidInputError(f"Invalid Instagram username: {username!r}")
    return cleaned


class ProfileScraper:
    """
    Scrapes an Instagram profile through Apify and keeps the latest snapshot.

    Collaborators not passed in are built from the config on ``__aenter__``.

    Example:
        async with ProfileScraper() as scraper:
            snapshot = await scraper.run("natgeo")
            print(snapshot.user.followers_count)
    """

    def __init__(
        self,
        config: ScraperConfig | None = None,
        job_client: ApifyJobClient | None = None,
        store: SnapshotStore | None = None,
        relocator: MediaRelocator | None = None,
        matcher: ProfileMatcher | None = None,
    ):
        """
        Initialize scraper with optional configuration and collaborators.

        Args:
            config: ScraperConfig instance, uses defaults if None
            job_client: Remote job client, built lazily from config if None
            store: Snapshot store, built from config's storage targets if None
            relocator: Media relocator, built from config's S3 settings if None
            matcher: Profile matching strategy, from config if None
        """
        self.config = config or ScraperConfig()
        self._job_client = job_client
        self._store = store
        self._relocator = relocator
        self._matcher = matcher or get_matcher(self.config.profile_matcher)
        self._http: httpx.AsyncClient | None = None
        self._objects: S3ObjectStore | None = None
        self._log = get_logger("scraper")

    async def __aenter__(self) -> "ProfileScraper":
        """Async context manager entry - initialize resources."""
        configure_logging(self.config)

        if self._relocator is None or self._store is None:
            self._objects = build_object_store(self.config)

        if self._relocator is None:
            self._http = httpx.AsyncClient(
                timeout=self.config.media_timeout_seconds,
                follow_redirects=True,
            )
            objects = self._objects if self.config.relocate_media else None
            self._relocator = MediaRelocator(self._http, objects)

        if self._store is None:
            try:
                self._store = build_store(self.config, self._objects)
            except NotConfiguredError as e:
                # Reported per call by _check_configured
                self._log.warning("store_not_configured", error=str(e))

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - cleanup resources."""
        if self._store:
            await self._store.close()
        if self._http:
            await self._http.aclose()
        if self._objects:
            await self._objects.close()

    def _check_configured(self) -> None:
        if self._job_client is None and not self.config.apify_token:
            raise NotConfiguredError("APIFY_API_TOKEN is not set")
        if self._store is None:
            check_storage_config(self.config)

    def _get_job_client(self) -> ApifyJobClient:
        if self._job_client is None:
            self._job_client = ApifyJobClient(
                self.config.apify_token,
                actor_id=self.config.apify_actor_id,
                results_type=self.config.apify_results_type,
                results_limit=self.config.results_limit,
                wait_secs=self.config.apify_wait_secs,
            )
        return self._job_client

    async def _fetch_records(self, username: str) -> tuple[list[dict[str, Any]], str | None]:
        """
        Submit one actor run and read its dataset with bounded retries.

        Returns:
            (records, error) - records is empty and error set when every
            fetch attempt failed
        """
        client = self._get_job_client()
        handle = await client.submit(username)
        self._log.info("job_submitted", username=username, run_id=handle.run_id)

        attempts = max(self.config.fetch_attempts, 1)
        last_error = None
        for attempt in range(1, attempts + 1):
            try:
                return await client.fetch(handle), None
            except Exception as e:
                last_error = str(e)
                self._log.warning(
                    "fetch_retry",
                    username=username,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=last_error,
                )
                if attempt < attempts:
                    await asyncio.sleep(self.config.fetch_retry_delay_seconds)

        self._log.error("fetch_exhausted", username=username, attempts=attempts)
        return [], f"Dataset fetch failed after {attempts} attempts: {last_error}"

    async def _relocate_images(self, username: str, post: Post, semaphore: asyncio.Semaphore) -> Post:
        async def relocate(index: int, url: str) -> str:
            async with semaphore:
                return await self._relocator.relocate(url, f"{username}/{post.id}", index)

        urls = await asyncio.gather(
            *(relocate(i, image.url) for i, image in enumerate(post.images))
        )
        images = [image.model_copy(update={"url": url}) for image, url in zip(post.images, urls)]
        return post.model_copy(update={"images": images})

    async def _relocate(self, username: str, profile: Profile, posts: list[Post]) -> tuple[Profile, list[Post]]:
        """Relocate the profile picture and every post image, keeping order."""
        if self._relocator is None or not self._relocator.enabled:
            return profile, posts

        semaphore = asyncio.Semaphore(max(self.config.max_concurrency, 1))

        async def relocate_pic() -> str:
            async with semaphore:
                return await self._relocator.relocate(profile.profile_pic_url, f"{username}/profile", 0)

        pic_url, *relocated = await asyncio.gather(
            relocate_pic(),
            *(self._relocate_images(username, post, semaphore) for post in posts),
        )
        return profile.model_copy(update={"profile_pic_url": pic_url}), relocated

    async def _build_snapshot(self, username: str) -> ProfileSnapshot:
        records, fetch_error = await self._fetch_records(username)
        self._log.info("records_fetched", username=username, records=len(records))

        if not records:
            return ProfileSnapshot.empty(username, error=fetch_error)

        profile_record: Mapping | None = self._matcher(records, username)
        if profile_record is None:
            status = SnapshotStatus.PARTIAL_DATA
            error = f"No profile record matched @{username}"
            profile = normalize_profile(records[0], username)
            profile = profile.model_copy(update={"username": username})
        else:
            status = SnapshotStatus.SUCCESS
            error = None
            profile = normalize_profile(profile_record, username)

        posts = normalize_posts(select_post_records(records, profile_record))
        profile, posts = await self._relocate(username, profile, posts)

        return ProfileSnapshot(
            user=profile,
            posts=posts,
            scraped_at=utcnow(),
            status=status,
            error=error,
        )

    async def scrape(self, username: str) -> ProfileSnapshot:
        """
        Scrape a profile without persisting it.

        Args:
            username: Instagram handle (with or without @)

        Returns:
            ProfileSnapshot; failures are reported through its status

        Raises:
            InvalidInputError: If the username is empty or malformed
            NotConfiguredError: If the Apify token or a storage setting is missing
        """
        username = clean_username(username)
        self._check_configured()
        self._log.info("scrape_start", username=username)

        try:
            snapshot = await self._build_snapshot(username)
        except Exception as e:
            self._log.exception("scrape_failed", username=username, error=str(e))
            return ProfileSnapshot.failed(username, str(e) or type(e).__name__)

        self._log.info(
            "scrape_complete",
            username=username,
            status=snapshot.status.value,
            posts_count=len(snapshot.posts),
        )
        return snapshot

    async def store(self, snapshot: ProfileSnapshot) -> None:
        """
        Persist a snapshot under its username.

        Raises:
            PersistenceError: If any storage target rejects the write
        """
        if self._store is None:
            raise PersistenceError("No snapshot store initialized")
        await self._store.upsert(snapshot.username, snapshot)
        self._log.info("snapshot_stored", username=snapshot.username, status=snapshot.status.value)

    async def run(self, username: str) -> ProfileSnapshot:
        """
        Scrape a profile and persist the result, including empty and error results.

        Storage failures are logged, never raised.

        Raises:
            InvalidInputError: If the username is empty or malformed
            NotConfiguredError: If the Apify token or a storage setting is missing
        """
        snapshot = await self.scrape(username)
        try:
            await self.store(snapshot)
        except PersistenceError as e:
            self._log.error("persist_failed", username=snapshot.username, error=str(e))
        return snapshot

    async def get(self, username: str) -> ProfileSnapshot | None:
        """
        Read the stored snapshot for a username.

        Raises:
            InvalidInputError: If the username is empty or malformed
            PersistenceError: If the store cannot be read
        """
        username = clean_username(username)
        if self._store is None:
            return None
        return await self._store.get(username)

    async def lookup(self, username: str) -> ProfileSnapshot | None:
        """
        Stored snapshot if present, else scrape it (when scrape_on_miss is set).

        A store read failure is treated like a miss.

        Returns:
            ProfileSnapshot, or None when nothing is stored and scraping is off
        """
        username = clean_username(username)
        try:
            cached = await self.get(username)
        except PersistenceError as e:
            self._log.error("store_read_failed", username=username, error=str(e))
            cached = None

        if cached is not None:
            self._log.info("store_hit", username=username, status=cached.status.value)
            return cached

        if not self.config.scrape_on_miss:
            return None

        return await self.run(username)

    async def run_many(
        self,
        usernames: list[str],
        delay_ms: int | None = None,
    ) -> list[ProfileSnapshot]:
        """
        Run several usernames sequentially with a delay between them.

        Args:
            usernames: Instagram handles
            delay_ms: Delay between runs (uses config default if None)

        Returns:
            List of ProfileSnapshots in same order as input
        """
        delay = delay_ms if delay_ms is not None else self.config.request_delay_ms
        snapshots = []

        for i, username in enumerate(usernames):
            snapshots.append(await self.run(username))

            if delay > 0 and i < len(usernames) - 1:
                await asyncio.sleep(delay / 1000)

        return snapshots
