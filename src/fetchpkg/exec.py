"""Command runners for external tools (gpg)."""

from __future__ import annotations

import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ExecResult:
    """Result envelope for subprocess execution."""

    argv: tuple[str, ...]
    cwd: Path | None
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def detail(self) -> str:
        return (self.stderr or self.stdout).strip()


class ExecError(RuntimeError):
    """Raised when a command returns non-zero in check mode."""

    def __init__(self, result: ExecResult):
        rendered = " ".join(result.argv)
        super().__init__(f"command failed ({result.returncode}): {rendered}\n{result.detail()}")
        self.result = result


def _resolved(cwd: Path | None) -> Path | None:
    return cwd.resolve() if cwd is not None else None


def run_command(
    argv: list[str],
    *,
    cwd: Path | None = None,
    check: bool = True,
) -> ExecResult:
    """Run command and return structured result.

    A missing executable raises ``FileNotFoundError`` from ``subprocess``.
    """
    completed = subprocess.run(argv, cwd=cwd, capture_output=True, text=True, check=False)
    result = ExecResult(
        argv=tuple(argv),
        cwd=_resolved(cwd),
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )
    if check and not result.ok:
        raise ExecError(result)
    return result


def pipe_to_command(
    argv: list[str],
    chunks: Iterable[bytes],
    *,
    cwd: Path | None = None,
    check: bool = True,
) -> ExecResult:
    """Spawn command, stream ``chunks`` into its stdin, close it and wait.

    If producing a chunk fails the child is killed and the error re-raised.
    A child that exits early (broken pipe) stops the writes; its exit status
    is reported as usual.
    """
    proc = subprocess.Popen(
        argv,
        cwd=cwd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    assert proc.stdin is not None
    try:
        for chunk in chunks:
            if not chunk:
                continue
            try:
                proc.stdin.write(chunk)
            except BrokenPipeError:
                break
    except BaseException:
        proc.kill()
        proc.communicate()
        raise

    # communicate() flushes and closes stdin before collecting output
    stdout, stderr = proc.communicate()
    result = ExecResult(
        argv=tuple(argv),
        cwd=_resolved(cwd),
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if check and not result.ok:
        raise ExecError(result)
    return result
