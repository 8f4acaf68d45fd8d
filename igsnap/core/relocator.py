"""Copies remote media into the object store so URLs outlive the CDN's."""

from urllib.parse import urlparse

import httpx

from igsnap.exceptions import RelocationError
from igsnap.logging import get_logger
from igsnap.storage.object_store import S3ObjectStore

CONTENT_TYPES = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
}
EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "video/mp4": "mp4",
}
DEFAULT_CONTENT_TYPE = "image/jpeg"


def guess_content_type(url: str, header: str | None = None) -> str:
    """
    Content type from the response header, else from the URL extension.

    Examples:
        ("https://x/a.png", None) -> "image/png"
        ("https://x/a", "image/webp; charset=binary") -> "image/webp"
        ("https://x/a.heic", None) -> "image/jpeg"
    """
    if header:
        media_type = header.split(";")[0].strip().lower()
        if media_type in EXTENSIONS:
            return media_type

    path = urlparse(url).path.lower()
    for suffix, content_type in CONTENT_TYPES.items():
        if path.endswith(suffix):
            return content_type
    return DEFAULT_CONTENT_TYPE


def media_key(subject_id: str, sequence_index: int, content_type: str) -> str:
    """Deterministic object key for one media item."""
    extension = EXTENSIONS.get(content_type, "jpg")
    return f"images/{subject_id}/{sequence_index}.{extension}"


class MediaRelocator:
    """
    Best-effort media relocation.

    ``relocate`` never raises: on any failure the source URL comes back
    unchanged. Without an object store it is a no-op.
    """

    def __init__(self, http: httpx.AsyncClient, store: S3ObjectStore | None = None):
        self._http = http
        self._store = store
        self._log = get_logger("relocator")

    @property
    def enabled(self) -> bool:
        return self._store is not None

    async def _download(self, source_url: str) -> tuple[bytes, str]:
        try:
            response = await self._http.get(source_url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RelocationError(f"Download failed: {e}") from e

        if not response.content:
            raise RelocationError("Download returned no content")

        return response.content, guess_content_type(
            source_url, response.headers.get("content-type")
        )

    async def relocate(self, source_url: str, subject_id: str, sequence_index: int) -> str:
        """
        Copy a media URL into the object store.

        Args:
            source_url: Original media URL
            subject_id: Owner path, e.g. "natgeo/3141592" or "natgeo/profile"
            sequence_index: Position of the media within its subject

        Returns:
            Object store URL, or source_url if relocation failed or is disabled
        """
        if self._store is None or not source_url:
            return source_url

        try:
            data, content_type = await self._download(source_url)
            key = media_key(subject_id, sequence_index, content_type)
            try:
                url = await self._store.put(key, data, content_type)
            except Exception as e:
                raise RelocationError(f"Upload failed: {e}") from e
        except RelocationError as e:
            self._log.warning(
                "relocation_failed",
                subject_id=subject_id,
                index=sequence_index,
                error=str(e),
            )
            return source_url

        self._log.debug("relocated", key=key, bytes=len(data))
        return url
