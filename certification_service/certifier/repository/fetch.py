"""Repository retrieval: archive download and safe extraction."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from urllib.parse import urlparse

import httpx

from certifier.errors import ExtractError, FetchError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def is_url(location: str) -> bool:
    return urlparse(location).scheme in ALLOWED_SCHEMES


class RepositoryFetcher:
    """Downloads repository archives and single files over HTTP."""

    def __init__(
        self,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def download(self, url: str) -> bytes:
        """Return the body at ``url``.

        Raises:
            FetchError: On an invalid URL, transport failure or non-2xx status.
        """
        if not is_url(url):
            raise FetchError(f"Invalid repository URL: {url!r}")

        logger.info("Downloading %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Download of {url} failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Download of {url} failed: {e}") from e

        logger.info("Downloaded %d bytes from %s", len(resp.content), url)
        return resp.content


def extract_archive(archive: bytes, dest: Path) -> Path:
    """Extract a zip archive into ``dest`` and return its content root.

    Raises:
        ExtractError: If the archive is corrupt or a member would land
            outside ``dest``.
    """
    dest = dest.resolve()
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            for member in zf.namelist():
                target = (dest / member).resolve()
                if not target.is_relative_to(dest):
                    raise ExtractError(f"Archive member escapes extraction folder: {member}")
            zf.extractall(dest)
    except zipfile.BadZipFile as e:
        raise ExtractError(f"Cannot extract repository archive: {e}") from e
    except OSError as e:
        raise ExtractError(f"Cannot extract repository archive: {e}") from e

    return find_content_root(dest)


def find_content_root(folder: Path) -> Path:
    """Use the single top-level directory of an extraction as its root."""
    children = list(folder.iterdir())
    if len(children) == 1 and children[0].is_dir():
        logger.info("Using single subdirectory '%s' as content root", children[0].name)
        return children[0]
    return folder
