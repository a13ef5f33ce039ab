"""Deterministic naming and presence guards for release artifacts.

Each side-effecting step checks its guard first and skips when the
expected output already exists; re-running a failed invocation resumes
from the first missing artifact.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fetchpkg.config import RunConfig

ARCHIVE_SUFFIX = ".tar.gz"
SIGNATURE_SUFFIX = ".asc"


def release_filename(product: str, version: str) -> str:
    """Build the archive filename for a release, e.g. ``riot-v1.2.3.tar.gz``."""
    return f"{product}-{version}{ARCHIVE_SUFFIX}"


def release_url(url_prefix: str, product: str, version: str) -> str:
    """Build the download URL: ``<prefix><version>/<filename>``."""
    return f"{url_prefix}{version}/{release_filename(product, version)}"


@dataclass(frozen=True)
class ReleaseArtifact:
    """Archive plus detached signature for one release version."""

    product: str
    version: str
    filename: str
    url: str
    archive_path: Path

    @property
    def signature_filename(self) -> str:
        return self.filename + SIGNATURE_SUFFIX

    @property
    def signature_url(self) -> str:
        return self.url + SIGNATURE_SUFFIX

    @property
    def signature_path(self) -> Path:
        return self.archive_path.with_name(self.signature_filename)


def resolve_artifact(config: RunConfig) -> ReleaseArtifact:
    """Resolve the release artifact for the configured target version."""
    if config.target_version is None:
        raise RuntimeError("cannot resolve a release artifact without a target version")
    filename = release_filename(config.product, config.target_version)
    return ReleaseArtifact(
        product=config.product,
        version=config.target_version,
        filename=filename,
        url=release_url(config.package_url_prefix, config.product, config.target_version),
        archive_path=config.packages_dir / filename,
    )


def archive_present(artifact: ReleaseArtifact) -> bool:
    return artifact.archive_path.exists()


def signature_present(artifact: ReleaseArtifact) -> bool:
    return artifact.signature_path.exists()


def deploy_present(config: RunConfig) -> bool:
    return config.expected_deploy_dir.is_dir()


def output_present(config: RunConfig) -> bool:
    return config.output_path.exists()
