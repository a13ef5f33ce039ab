"""fetch-package CLI - fetch, verify and repackage a web application release."""

from __future__ import annotations

from pathlib import Path

import typer

from fetchpkg import ui
from fetchpkg.config import ConfigError, resolve_run_config
from fetchpkg.download import make_session
from fetchpkg.pipeline import import_release_key, run_fetch

app = typer.Typer(
    name="fetch-package",
    help="Fetch a release archive, verify it, inject config.json and pack webapp.asar.",
    add_completion=False,
)


@app.command(context_settings={"ignore_unknown_options": True, "allow_extra_args": True})
def fetch(
    version: list[str] | None = typer.Argument(
        None,
        metavar="[VERSION]",
        help="Release to fetch, e.g. v1.2.3 (defaults to 'v' + package.json version).",
        show_default=False,
    ),
    noverify: bool = typer.Option(
        False,
        "--noverify",
        help="Skip signature download and verification.",
    ),
    importkey: bool = typer.Option(
        False,
        "--importkey",
        help="Import the release signing key into gpg and exit.",
    ),
    packages: str | None = typer.Option(
        None,
        "--packages",
        help="Directory for downloaded archives (default: packages).",
    ),
    deploys: str | None = typer.Option(
        None,
        "--deploys",
        help="Directory for extracted releases (default: deploys).",
    ),
    cfgdir: str | None = typer.Option(
        None,
        "--cfgdir",
        "-d",
        help="Directory holding config.json; pass '' to build without config.",
    ),
) -> None:
    """Fetch, verify and repackage one release."""
    try:
        config = resolve_run_config(
            positionals=version or [],
            noverify=noverify,
            importkey=importkey,
            packages=packages,
            deploys=deploys,
            cfgdir=cfgdir,
            work_dir=Path.cwd(),
        )
    except ConfigError as exc:
        for line in exc.lines:
            ui.error(line)
        raise typer.Exit(1) from exc

    session = make_session()
    try:
        if config.import_key:
            import_release_key(config, session)
        else:
            run_fetch(config, session)
    except RuntimeError as exc:
        ui.error(str(exc))
        raise typer.Exit(1) from exc
    finally:
        session.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
