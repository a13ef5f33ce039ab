"""fetch-package orchestrator.

Strictly sequential: config → (key import) → archive → signature →
extract → clear output → config.json → pack. Every step either completes
or raises; the CLI turns raised errors into exit code 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import requests

from fetchpkg import ui
from fetchpkg.artifacts import (
    ReleaseArtifact,
    archive_present,
    deploy_present,
    resolve_artifact,
    signature_present,
)
from fetchpkg.config import RunConfig
from fetchpkg.deploy import (
    DeployError,
    build_output,
    extract_release,
    inject_config,
    remove_stale_output,
)
from fetchpkg.download import download_to_file, iter_remote
from fetchpkg.gpg import GpgUnavailableError, have_gpg, import_key, verify_signature


class KeyImportError(RuntimeError):
    """Raised when gpg refuses the release key."""


@dataclass
class FetchOutcome:
    """What one run actually did; skipped steps stay False."""

    deploy_dir: Path
    output_path: Path
    downloaded: list[Path] = field(default_factory=list)
    verified: bool = False
    extracted: bool = False
    removed_stale_output: bool = False
    config_injected: Path | None = None


def import_release_key(config: RunConfig, session: requests.Session) -> None:
    """Fetch the release public key and pipe it into ``gpg --import``."""
    if not have_gpg(config.gpg_binary):
        raise GpgUnavailableError(
            "Can't import key without working GPG binary: install GPG and try again"
        )

    result = import_key(iter_remote(session, config.pub_key_url), gpg=config.gpg_binary)
    if not result.ok:
        raise KeyImportError(f"Failed to import key: {result.detail() or result.returncode}")
    ui.success("Key imported!")


def _ensure_downloaded(session: requests.Session, url: str, dest: Path, present: bool) -> bool:
    if present:
        ui.info(f"Already have {dest.name}: not redownloading")
        return False
    download_to_file(session, url, dest)
    return True


def fetch_release(config: RunConfig, session: requests.Session, outcome: FetchOutcome) -> ReleaseArtifact:
    """Make sure the archive (and signature when verifying) is on disk and trusted."""
    artifact = resolve_artifact(config)

    if _ensure_downloaded(session, artifact.url, artifact.archive_path, archive_present(artifact)):
        outcome.downloaded.append(artifact.archive_path)

    if not config.verify:
        ui.warn(f"{artifact.archive_path} downloaded but NOT verified")
        return artifact

    if _ensure_downloaded(
        session, artifact.signature_url, artifact.signature_path, signature_present(artifact)
    ):
        outcome.downloaded.append(artifact.signature_path)

    verify_signature(artifact.archive_path, artifact.signature_path, gpg=config.gpg_binary)
    outcome.verified = True
    ui.success(f"{artifact.archive_path} downloaded and verified")
    return artifact


def run_fetch(config: RunConfig, session: requests.Session) -> FetchOutcome:
    """Produce the output package for ``config.target_version``."""
    if config.verify and not have_gpg(config.gpg_binary):
        raise GpgUnavailableError(
            "No working GPG binary: install GPG or pass --noverify to skip verification"
        )

    deploy_dir = config.expected_deploy_dir
    outcome = FetchOutcome(deploy_dir=deploy_dir, output_path=config.output_path)

    if deploy_present(config):
        ui.info(f"{deploy_dir} already exists")
    else:
        artifact = fetch_release(config, session, outcome)
        extract_release(artifact.archive_path, config.deploys_dir)
        outcome.extracted = True
        if not deploy_present(config):
            raise DeployError(f"{artifact.archive_path} did not contain {deploy_dir.name}/")

    outcome.removed_stale_output = remove_stale_output(config)
    outcome.config_injected = inject_config(config, deploy_dir)
    build_output(deploy_dir, config.output_path)
    ui.success("Done!")
    return outcome
