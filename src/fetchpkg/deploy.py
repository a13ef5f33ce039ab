"""Deploy directory steps: extract, clear stale output, inject config, pack."""

from __future__ import annotations

import shutil
import tarfile
from pathlib import Path

from fetchpkg import asar, ui
from fetchpkg.artifacts import output_present
from fetchpkg.config import RunConfig

CONFIG_FILENAME = "config.json"


class DeployError(RuntimeError):
    """Raised when the deploy directory cannot be prepared."""


def extract_release(archive: Path, deploys_dir: Path) -> None:
    """Extract a ``.tar.gz`` release into ``deploys_dir``.

    Entries are not filtered: the archive is the (verified) release itself.
    """
    deploys_dir.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive, "r:gz") as tar:
            tar.extractall(deploys_dir, filter="fully_trusted")
    except tarfile.TarError as exc:
        raise DeployError(f"failed to extract {archive}: {exc}") from exc


def remove_stale_output(config: RunConfig) -> bool:
    """Delete a previous output package; returns True when one was removed."""
    if not output_present(config):
        return False
    ui.info(f"{config.output_path} already present: removing")
    config.output_path.unlink()
    return True


def inject_config(config: RunConfig, deploy_dir: Path) -> Path | None:
    """Copy ``config.json`` from the config directory into the deploy.

    Returns the destination path, or None when injection is skipped.
    """
    if config.skip_config or config.cfg_dir is None:
        ui.info("Skipping config file")
        return None

    source = config.work_dir / config.cfg_dir / CONFIG_FILENAME
    dest = deploy_dir / CONFIG_FILENAME
    ui.info(f"{source} -> {dest}")
    try:
        shutil.copyfile(source, dest)
    except FileNotFoundError as exc:
        raise DeployError(f"config file not found: {exc.filename}") from exc
    return dest


def build_output(deploy_dir: Path, output_path: Path) -> Path:
    ui.info(f"Pack {deploy_dir} -> {output_path}")
    return asar.create_package(deploy_dir, output_path)
