"""Unit tests for deploy directory steps."""

from __future__ import annotations

from pathlib import Path

import pytest

from fetchpkg.asar import list_package
from fetchpkg.config import resolve_run_config
from fetchpkg.deploy import (
    DeployError,
    build_output,
    extract_release,
    inject_config,
    remove_stale_output,
)


def test_extract_release_creates_deploys_root(tmp_path: Path, release_tarball) -> None:
    archive = tmp_path / "riot-v1.2.3.tar.gz"
    archive.write_bytes(release_tarball("v1.2.3", {"index.html": "hi", "bundles/app.js": "js"}))
    deploys = tmp_path / "deploys"

    extract_release(archive, deploys)

    assert (deploys / "riot-v1.2.3" / "index.html").read_text(encoding="utf-8") == "hi"
    assert (deploys / "riot-v1.2.3" / "bundles" / "app.js").read_text(encoding="utf-8") == "js"


def test_extract_release_rejects_corrupt_archive(tmp_path: Path) -> None:
    archive = tmp_path / "riot-v1.2.3.tar.gz"
    archive.write_bytes(b"definitely not gzip")

    with pytest.raises(DeployError, match="failed to extract"):
        extract_release(archive, tmp_path / "deploys")


def test_remove_stale_output(tmp_path: Path) -> None:
    config = resolve_run_config(positionals=["v1"], cfgdir="", work_dir=tmp_path)

    assert remove_stale_output(config) is False

    config.output_path.write_bytes(b"old package")
    assert remove_stale_output(config) is True
    assert not config.output_path.exists()


def test_inject_config_copies_and_overwrites(tmp_path: Path) -> None:
    (tmp_path / "conf").mkdir()
    (tmp_path / "conf" / "config.json").write_text('{"new": true}', encoding="utf-8")
    deploy_dir = tmp_path / "deploys" / "riot-v1"
    deploy_dir.mkdir(parents=True)
    (deploy_dir / "config.json").write_text('{"old": true}', encoding="utf-8")
    config = resolve_run_config(positionals=["v1"], cfgdir="conf", work_dir=tmp_path)

    dest = inject_config(config, deploy_dir)

    assert dest == deploy_dir / "config.json"
    assert dest.read_text(encoding="utf-8") == '{"new": true}'


def test_inject_config_skipped_for_empty_cfgdir(tmp_path: Path) -> None:
    deploy_dir = tmp_path / "deploys" / "riot-v1"
    deploy_dir.mkdir(parents=True)
    config = resolve_run_config(positionals=["v1"], cfgdir="", work_dir=tmp_path)

    assert inject_config(config, deploy_dir) is None
    assert not (deploy_dir / "config.json").exists()


def test_inject_config_missing_source_is_fatal(tmp_path: Path) -> None:
    (tmp_path / "conf").mkdir()
    deploy_dir = tmp_path / "deploys" / "riot-v1"
    deploy_dir.mkdir(parents=True)
    config = resolve_run_config(positionals=["v1"], cfgdir="conf", work_dir=tmp_path)

    with pytest.raises(DeployError, match="config file not found"):
        inject_config(config, deploy_dir)


def test_build_output_packs_deploy_dir(tmp_path: Path) -> None:
    deploy_dir = tmp_path / "riot-v1"
    deploy_dir.mkdir()
    (deploy_dir / "index.html").write_text("hi", encoding="utf-8")

    output = build_output(deploy_dir, tmp_path / "webapp.asar")

    assert list_package(output) == ["index.html"]
