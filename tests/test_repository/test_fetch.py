"""Tests for certifier.repository.fetch -- download and safe extraction."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import httpx
import pytest

from certifier.errors import ExtractError, FetchError
from certifier.repository import RepositoryFetcher, extract_archive, find_content_root
from certifier.repository.fetch import is_url


def _zip(members: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return buf.getvalue()


class TestIsUrl:
    def test_http_and_https(self) -> None:
        assert is_url("http://example.com/repo.zip")
        assert is_url("https://example.com/repo.zip")

    def test_other_schemes_and_paths(self) -> None:
        assert not is_url("file:///etc/passwd")
        assert not is_url("/tmp/repo.zip")
        assert not is_url("ftp://example.com/repo.zip")


class TestExtractArchive:
    def test_single_top_level_directory_is_root(self, tmp_path: Path) -> None:
        archive = _zip({"repo-main/metadata.yml": "apis: []\n", "repo-main/README.md": "#"})
        root = extract_archive(archive, tmp_path)
        assert root == (tmp_path / "repo-main").resolve()
        assert (root / "metadata.yml").is_file()

    def test_flat_archive_root(self, tmp_path: Path) -> None:
        archive = _zip({"metadata.yml": "apis: []\n", "specs/openapi.yml": "openapi: 3.0.0"})
        assert extract_archive(archive, tmp_path) == tmp_path.resolve()

    def test_zip_slip_rejected(self, tmp_path: Path) -> None:
        dest = tmp_path / "dest"
        dest.mkdir()
        archive = _zip({"../evil.txt": "pwned"})
        with pytest.raises(ExtractError, match="escapes"):
            extract_archive(archive, dest)
        assert not (tmp_path / "evil.txt").exists()

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        with pytest.raises(ExtractError):
            extract_archive(b"definitely not a zip", tmp_path)


class TestFindContentRoot:
    def test_single_file_is_not_a_root(self, tmp_path: Path) -> None:
        (tmp_path / "only.yml").write_text("x")
        assert find_content_root(tmp_path) == tmp_path


class TestRepositoryFetcher:
    @pytest.mark.asyncio
    async def test_download(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/repo.zip"
            return httpx.Response(200, content=b"PK-bytes")

        fetcher = RepositoryFetcher(transport=httpx.MockTransport(handler))
        assert await fetcher.download("https://example.com/repo.zip") == b"PK-bytes"

    @pytest.mark.asyncio
    async def test_follows_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.zip":
                return httpx.Response(302, headers={"Location": "https://example.com/new.zip"})
            return httpx.Response(200, content=b"moved")

        fetcher = RepositoryFetcher(transport=httpx.MockTransport(handler))
        assert await fetcher.download("https://example.com/old.zip") == b"moved"

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        fetcher = RepositoryFetcher(
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )
        with pytest.raises(FetchError, match="404"):
            await fetcher.download("https://example.com/missing.zip")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = RepositoryFetcher(transport=httpx.MockTransport(handler))
        with pytest.raises(FetchError, match="connection refused"):
            await fetcher.download("https://example.com/repo.zip")

    @pytest.mark.asyncio
    async def test_invalid_url(self) -> None:
        with pytest.raises(FetchError):
            await RepositoryFetcher().download("not a url")
