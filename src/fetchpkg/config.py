"""Run configuration for fetch-package.

Everything the run depends on (directories, remote endpoints, the gpg
binary and the working directory) is resolved once into a frozen
``RunConfig`` and passed down explicitly.
"""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

PRODUCT = "riot"
PUB_KEY_URL = "https://packages.riot.im/riot-release-key.asc"
PACKAGE_URL_PREFIX = "https://github.com/vector-im/riot-web/releases/download/"
OUTPUT_PACKAGE = "webapp.asar"
DEFAULT_PACKAGES_DIR = "packages"
DEFAULT_DEPLOYS_DIR = "deploys"
DEFAULT_GPG = "gpg"
PACKAGE_JSON = "package.json"

MISSING_CFGDIR_HELP = (
    "No config directory set",
    "Specify a config directory with --cfgdir or -d",
    "To build with no config (and no auto-update), pass the empty string (-d '')",
)


class ConfigError(RuntimeError):
    """Raised when command-line input cannot produce a usable run config."""

    def __init__(self, message: str, *, lines: Sequence[str] = ()):
        super().__init__(message)
        self.lines = tuple(lines) or (message,)


def package_url_prefix() -> str:
    return os.getenv("FETCHPKG_PACKAGE_URL_PREFIX", PACKAGE_URL_PREFIX)


def pub_key_url() -> str:
    return os.getenv("FETCHPKG_PUB_KEY_URL", PUB_KEY_URL)


def gpg_binary() -> str:
    return os.getenv("FETCHPKG_GPG", DEFAULT_GPG)


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for one fetch-package invocation."""

    verify: bool
    import_key: bool
    packages_dir: Path
    deploys_dir: Path
    cfg_dir: str | None
    target_version: str | None
    work_dir: Path
    output_path: Path
    product: str = PRODUCT
    package_url_prefix: str = PACKAGE_URL_PREFIX
    pub_key_url: str = PUB_KEY_URL
    gpg_binary: str = DEFAULT_GPG

    @property
    def skip_config(self) -> bool:
        """True when the empty-string sentinel asked to skip config.json."""
        return self.cfg_dir == ""

    @property
    def expected_deploy_dir(self) -> Path:
        if self.target_version is None:
            raise ConfigError("no target version resolved")
        return self.deploys_dir / f"{self.product}-{self.target_version}"


def read_package_version(work_dir: Path) -> str | None:
    """Return the ``version`` field of ``<work_dir>/package.json`` if any."""
    path = work_dir / PACKAGE_JSON
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid {path}: {exc}") from exc
    version = data.get("version") if isinstance(data, dict) else None
    return str(version) if version else None


def resolve_run_config(
    *,
    positionals: Sequence[str] = (),
    noverify: bool = False,
    importkey: bool = False,
    packages: str | None = None,
    deploys: str | None = None,
    cfgdir: str | None = None,
    work_dir: Path | None = None,
) -> RunConfig:
    """Build the run config from parsed command-line values.

    ``positionals`` holds every token that was not a known flag; the last
    one is the target version.
    """
    resolved_work_dir = (work_dir or Path.cwd()).resolve()

    target_version = positionals[-1] if positionals else None
    if target_version is None:
        package_version = read_package_version(resolved_work_dir)
        if package_version is not None:
            target_version = f"v{package_version}"

    if not importkey:
        if cfgdir is None:
            raise ConfigError(MISSING_CFGDIR_HELP[0], lines=MISSING_CFGDIR_HELP)
        if target_version is None:
            raise ConfigError(
                f"No target version given and no version found in {resolved_work_dir / PACKAGE_JSON}"
            )

    return RunConfig(
        verify=not noverify,
        import_key=importkey,
        packages_dir=resolved_work_dir / (DEFAULT_PACKAGES_DIR if packages is None else packages),
        deploys_dir=resolved_work_dir / (DEFAULT_DEPLOYS_DIR if deploys is None else deploys),
        cfg_dir=cfgdir,
        target_version=target_version,
        work_dir=resolved_work_dir,
        output_path=resolved_work_dir / OUTPUT_PACKAGE,
        package_url_prefix=package_url_prefix(),
        pub_key_url=pub_key_url(),
        gpg_binary=gpg_binary(),
    )
