"""Pytest configuration and fixtures for fetchpkg tests."""
from __future__ import annotations

import tarfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import requests


def pytest_sessionfinish(session, exitstatus):
    """Check that coverage data was collected if --cov was requested.

    This prevents silent "no data collected" scenarios that produce 0% coverage
    without failing the test run.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)

    if not cov_enabled:
        return

    cwd = Path.cwd()
    coverage_files = list(cwd.glob(".coverage*"))

    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'fetchpkg' (the package) not 'src/fetchpkg' (filesystem path).",
            returncode=1
        )


class FakeResponse:
    """Minimal stand-in for a streamed ``requests.Response``."""

    def __init__(
        self,
        body: bytes = b"",
        *,
        status_code: int = 200,
        fail_after_chunks: int | None = None,
    ):
        self.body = body
        self.status_code = status_code
        self.fail_after_chunks = fail_after_chunks
        self.headers = {"content-length": str(len(body))}
        self.chunk_sizes: list[int] = []
        self.closed = False

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        self.chunk_sizes.append(chunk_size)
        for index, start in enumerate(range(0, len(self.body), chunk_size)):
            if self.fail_after_chunks is not None and index >= self.fail_after_chunks:
                raise requests.ConnectionError("connection reset by peer")
            yield self.body[start : start + chunk_size]


class FakeSession:
    """Routes URLs to canned responses and records every request."""

    def __init__(self, routes: dict[str, FakeResponse | bytes] | None = None):
        self.routes = dict(routes or {})
        self.requests: list[str] = []
        self.closed = False

    def get(self, url: str, *, stream: bool = False, allow_redirects: bool = True) -> FakeResponse:
        assert stream, "downloads must be streamed"
        assert allow_redirects
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404)
        if isinstance(route, bytes):
            return FakeResponse(route)
        return route

    def close(self) -> None:
        self.closed = True


class OfflineSession(FakeSession):
    """Session that fails the test on any request."""

    def get(self, url: str, *, stream: bool = False, allow_redirects: bool = True) -> FakeResponse:
        raise AssertionError(f"unexpected network access: {url}")


@pytest.fixture
def fake_session() -> Callable[..., FakeSession]:
    return FakeSession


@pytest.fixture
def offline_session() -> OfflineSession:
    return OfflineSession()


@pytest.fixture
def fake_response() -> type[FakeResponse]:
    return FakeResponse


@pytest.fixture
def release_tarball(tmp_path: Path) -> Callable[..., bytes]:
    """Build ``riot-<version>.tar.gz`` bytes with the given files inside."""

    def _build(version: str, files: dict[str, str] | None = None, *, top_level: str | None = None) -> bytes:
        top = top_level or f"riot-{version}"
        staging = tmp_path / "_staging" / top
        staging.mkdir(parents=True, exist_ok=True)
        for rel, content in (files or {"index.html": "<html></html>\n"}).items():
            target = staging / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

        archive = tmp_path / "_staging" / f"riot-{version}.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(staging, arcname=top)
        return archive.read_bytes()

    return _build
