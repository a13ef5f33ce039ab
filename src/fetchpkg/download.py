"""Streaming HTTP downloads for release archives and the release key."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import requests

from fetchpkg import __version__, ui

CHUNK_SIZE = 64 * 1024


class DownloadError(RuntimeError):
    """Raised when a remote resource cannot be fetched completely."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


def make_session() -> requests.Session:
    """Create the HTTP session used for every request of one run."""
    session = requests.Session()
    session.headers["User-Agent"] = f"fetchpkg/{__version__}"
    return session


def _is_success(status_code: int) -> bool:
    return status_code // 100 == 2


def iter_remote(session: requests.Session, url: str, *, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the body of ``url`` chunk by chunk, following redirects."""
    try:
        with session.get(url, stream=True, allow_redirects=True) as resp:
            if not _is_success(resp.status_code):
                raise DownloadError(url, f"Download failed: {resp.status_code}")
            for chunk in resp.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
    except requests.RequestException as exc:
        raise DownloadError(url, str(exc)) from exc


def download_to_file(
    session: requests.Session,
    url: str,
    dest: Path,
    *,
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """Stream ``url`` into ``dest`` and return the number of bytes written.

    On any failure the partially written file is closed and removed before
    ``DownloadError`` propagates.
    """
    ui.info(f"Downloading {url}...")
    dest.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    try:
        with dest.open("wb") as handle:
            with session.get(url, stream=True, allow_redirects=True) as resp:
                if not _is_success(resp.status_code):
                    raise DownloadError(url, f"Download failed: {resp.status_code}")
                total = int(resp.headers.get("content-length") or 0) or None
                with ui.transfer_progress(dest.name, total) as advance:
                    for chunk in resp.iter_content(chunk_size=chunk_size):
                        if not chunk:
                            continue
                        handle.write(chunk)
                        written += len(chunk)
                        advance(len(chunk))
    except DownloadError:
        dest.unlink(missing_ok=True)
        raise
    except OSError as exc:
        # requests.RequestException is an OSError subclass
        dest.unlink(missing_ok=True)
        raise DownloadError(url, str(exc)) from exc

    return written
