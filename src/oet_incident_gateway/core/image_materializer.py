"""Download chat images and re-encode them inline as data URIs.

Downloads run concurrently and settle independently: a failing URL is logged
and dropped, the others are still returned. Limits come from the ``files``
configuration section.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
from collections.abc import Sequence
from urllib.parse import urlparse

import httpx
import structlog

from oet_incident_gateway.config.schema import MIB, FilesConfig
from oet_incident_gateway.models.attachment import MaterializedImage
from oet_incident_gateway.utils.async_helpers import ImageDownloadError
from oet_incident_gateway.utils.metrics import get_metrics

log = structlog.get_logger()

ALLOWED_IMAGE_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+)(?:;[^,]*)?;base64,(?P<payload>.*)$", re.DOTALL)


def normalize_content_type(value: str | None) -> str:
    """Strip parameters and lower-case a Content-Type header value."""
    return (value or "").split(";", 1)[0].strip().lower()


def to_data_uri(content_type: str, body: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(body).decode('ascii')}"


def filename_for(url: str, content_type: str, index: int) -> str:
    """Derive a filename for a downloaded image.

    The last URL path segment is used when it has an extension, otherwise
    ``image_<index>.<subtype>``.
    """
    segment = urlparse(url).path.rsplit("/", 1)[-1]
    if "." in segment:
        return segment
    subtype = content_type.split("/", 1)[-1] or "jpg"
    return f"image_{index}.{subtype}"


def decode_data_uri(
    data_uri: str,
    index: int = 1,
    max_file_size: int = 5 * MIB,
) -> MaterializedImage:
    """Turn an inline ``data:<mime>;base64,<payload>`` string into an image.

    Args:
        data_uri: The inline file as sent in ``files_urls``.
        index: Position used to name the file ``file_<index>.<ext>``.
        max_file_size: Ceiling on decoded bytes.

    Returns:
        MaterializedImage with ``source_url`` set to ``"inline"``.

    Raises:
        ImageDownloadError: If the value is malformed, not an allowed image
            type, empty or too large.
    """
    match = DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise ImageDownloadError("Inline file is not a base64 data URI")

    content_type = normalize_content_type(match.group("mime"))
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ImageDownloadError(f"File type not allowed: {content_type}")

    try:
        body = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDownloadError(f"Inline file has invalid base64 payload: {e}") from e

    if not body:
        raise ImageDownloadError("Inline file is empty")
    if len(body) > max_file_size:
        raise ImageDownloadError(
            f"Inline file too large: {len(body)} bytes. Maximum allowed: {max_file_size} bytes"
        )

    extension = content_type.split("/", 1)[-1]
    return MaterializedImage(
        filename=f"file_{index}.{extension}",
        content_type=content_type,
        data_uri=to_data_uri(content_type, body),
        size=len(body),
        source_url="inline",
    )


class ImageMaterializer:
    """Downloads image URLs concurrently and encodes them as data URIs.

    Example:
        materializer = ImageMaterializer(config.files)
        images = await materializer.materialize(urls)
    """

    def __init__(
        self,
        config: FilesConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the materializer.

        Args:
            config: File limits.
            client: Shared HTTP client. If None, one is created per batch with
                ``max_redirects`` from the configuration; an injected client
                keeps its own redirect limit.
        """
        self._config = config
        self._client = client

    async def materialize(self, urls: Sequence[str]) -> list[MaterializedImage]:
        """Download every URL and return the images that passed validation.

        Args:
            urls: Image URLs; only the first ``max_files_count`` are used.

        Returns:
            Successful images in input order, trimmed to ``max_total_size``.
        """
        if not urls:
            return []

        selected = list(urls[: self._config.max_files_count])
        if len(urls) > len(selected):
            log.warning(
                "image_count_limit_exceeded",
                requested=len(urls),
                max_files_count=self._config.max_files_count,
            )

        if self._client is not None:
            results = await self._download_all(self._client, selected)
        else:
            async with httpx.AsyncClient(
                timeout=self._config.download_timeout,
                follow_redirects=True,
                max_redirects=self._config.max_redirects,
            ) as client:
                results = await self._download_all(client, selected)

        metrics = get_metrics()
        images: list[MaterializedImage] = []
        failed = 0
        for url, result in zip(selected, results, strict=True):
            if isinstance(result, BaseException):
                failed += 1
                log.warning(
                    "image_download_failed",
                    url=url,
                    error_type=type(result).__name__,
                    error=str(result),
                )
            else:
                images.append(result)

        images = self._apply_total_limit(images)

        metrics.images_materialized.inc(len(images))
        metrics.images_failed.inc(len(selected) - len(images))
        log.info(
            "images_materialized",
            requested=len(selected),
            succeeded=len(images),
            failed=failed,
        )
        return images

    async def _download_all(
        self, client: httpx.AsyncClient, urls: list[str]
    ) -> list[MaterializedImage | BaseException]:
        return await asyncio.gather(
            *(self._download(client, url, index) for index, url in enumerate(urls)),
            return_exceptions=True,
        )

    async def _download(
        self, client: httpx.AsyncClient, url: str, index: int
    ) -> MaterializedImage:
        """Download and validate one image.

        Raises:
            ImageDownloadError: On transport failure, disallowed type, empty or
                oversized body.
        """
        max_size = self._config.max_file_size
        try:
            async with client.stream(
                "GET",
                url,
                timeout=self._config.download_timeout,
                follow_redirects=True,
            ) as response:
                response.raise_for_status()

                content_type = normalize_content_type(response.headers.get("content-type"))
                if content_type not in ALLOWED_IMAGE_TYPES:
                    raise ImageDownloadError(
                        f"File type not allowed: {content_type or 'unknown'}", url=url
                    )

                declared = response.headers.get("content-length")
                if declared is not None and declared.isdigit() and int(declared) > max_size:
                    raise ImageDownloadError(
                        f"File too large: {declared} bytes. Maximum allowed: {max_size} bytes",
                        url=url,
                    )

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > max_size:
                        raise ImageDownloadError(
                            f"File exceeds maximum size of {max_size} bytes", url=url
                        )
        except httpx.HTTPError as e:
            raise ImageDownloadError(f"Failed to download image: {e}", url=url) from e

        if not body:
            raise ImageDownloadError("File is empty or corrupted", url=url)

        image = MaterializedImage(
            filename=filename_for(url, content_type, index),
            content_type=content_type,
            data_uri=to_data_uri(content_type, bytes(body)),
            size=len(body),
            source_url=url,
        )
        log.debug("image_downloaded", url=url, filename=image.filename, size=image.size)
        return image

    def _apply_total_limit(self, images: list[MaterializedImage]) -> list[MaterializedImage]:
        """Drop images once the cumulative size would exceed ``max_total_size``."""
        kept: list[MaterializedImage] = []
        total = 0
        for image in images:
            if total + image.size > self._config.max_total_size:
                log.warning(
                    "image_total_size_exceeded",
                    filename=image.filename,
                    size=image.size,
                    max_total_size=self._config.max_total_size,
                )
                continue
            kept.append(image)
            total += image.size
        return kept
