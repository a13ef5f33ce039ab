"""GnuPG wrappers: availability probe, detached-signature check, key import."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from fetchpkg.exec import ExecResult, pipe_to_command, run_command


class GpgUnavailableError(RuntimeError):
    """Raised when a working gpg binary is required but missing."""


class SignatureVerificationError(RuntimeError):
    """Raised when gpg rejects a detached signature."""

    def __init__(self, result: ExecResult):
        super().__init__(f"Signature verification failed! {result.detail()}".strip())
        self.result = result


def have_gpg(gpg: str = "gpg") -> bool:
    """Probe ``gpg --version``; any failure means gpg is unusable."""
    try:
        result = run_command([gpg, "--version"], check=False)
    except OSError:
        return False
    return result.ok


def verify_signature(archive: Path, signature: Path, *, gpg: str = "gpg") -> ExecResult:
    """Run ``gpg --verify <signature> <archive>``."""
    result = run_command([gpg, "--verify", str(signature), str(archive)], check=False)
    if not result.ok:
        raise SignatureVerificationError(result)
    return result


def import_key(key_chunks: Iterable[bytes], *, gpg: str = "gpg") -> ExecResult:
    """Stream key material into ``gpg --import``; the caller checks ``ok``."""
    return pipe_to_command([gpg, "--import"], key_chunks, check=False)
