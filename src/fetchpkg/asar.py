"""Electron asar archive writer and reader.

Layout of a package::

    uint32le 4                  size pickle payload length
    uint32le len(header pickle)
    uint32le payload length     header pickle
    int32le  len(json)
    json header, zero padded to a multiple of 4
    file bodies, concatenated in header order

Offsets in the header are decimal strings relative to the end of the
header pickle.
"""

from __future__ import annotations

import hashlib
import json
import os
import stat
import struct
from pathlib import Path
from typing import Any, BinaryIO

BLOCK_SIZE = 4 * 1024 * 1024
COPY_CHUNK = 64 * 1024
_SIZE_PICKLE = struct.Struct("<II")


class AsarError(RuntimeError):
    """Raised for trees that cannot be packed or packages that cannot be read."""


def _align4(n: int) -> int:
    return (n + 3) & ~3


def _file_integrity(path: Path) -> dict[str, Any]:
    whole = hashlib.sha256()
    blocks: list[str] = []
    with path.open("rb") as fh:
        while True:
            block = fh.read(BLOCK_SIZE)
            if not block:
                break
            whole.update(block)
            blocks.append(hashlib.sha256(block).hexdigest())
    if not blocks:
        blocks.append(hashlib.sha256(b"").hexdigest())
    return {
        "algorithm": "SHA256",
        "hash": whole.hexdigest(),
        "blockSize": BLOCK_SIZE,
        "blocks": blocks,
    }


def _link_target(root: Path, link: Path) -> str:
    real_root = os.path.realpath(root)
    target = os.path.realpath(link)
    rel = os.path.relpath(target, real_root)
    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        raise AsarError(f"{link} links outside the package root: {target}")
    return Path(rel).as_posix()


class _TreeBuilder:
    def __init__(self, root: Path):
        self.root = root
        self.bodies: list[tuple[Path, int]] = []
        self.offset = 0

    def build(self) -> dict[str, Any]:
        return {"files": self._walk(self.root)}

    def _walk(self, directory: Path) -> dict[str, Any]:
        entries: dict[str, Any] = {}
        for child in sorted(directory.iterdir(), key=lambda p: p.name):
            if child.is_symlink():
                entries[child.name] = {"link": _link_target(self.root, child)}
            elif child.is_dir():
                entries[child.name] = {"files": self._walk(child)}
            elif child.is_file():
                entries[child.name] = self._file_node(child)
        return entries

    def _file_node(self, path: Path) -> dict[str, Any]:
        st = path.stat()
        node: dict[str, Any] = {"size": st.st_size, "offset": str(self.offset)}
        if st.st_mode & stat.S_IXUSR:
            node["executable"] = True
        node["integrity"] = _file_integrity(path)
        self.bodies.append((path, st.st_size))
        self.offset += st.st_size
        return node


def encode_header(header: dict[str, Any]) -> bytes:
    """Serialize a header dict into the size pickle plus header pickle."""
    raw = json.dumps(header, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    payload = struct.pack("<i", len(raw)) + raw + b"\0" * (_align4(len(raw)) - len(raw))
    header_pickle = struct.pack("<I", len(payload)) + payload
    return _SIZE_PICKLE.pack(4, len(header_pickle)) + header_pickle


def _copy_body(path: Path, size: int, out: BinaryIO) -> None:
    remaining = size
    with path.open("rb") as fh:
        while remaining:
            chunk = fh.read(min(COPY_CHUNK, remaining))
            if not chunk:
                raise AsarError(f"{path} shrank while packing ({size - remaining} of {size} bytes)")
            out.write(chunk)
            remaining -= len(chunk)


def create_package(src_dir: Path, dest: Path) -> Path:
    """Pack the tree under ``src_dir`` into the asar file ``dest``."""
    if not src_dir.is_dir():
        raise AsarError(f"not a directory: {src_dir}")

    builder = _TreeBuilder(src_dir)
    header = builder.build()

    dest.parent.mkdir(parents=True, exist_ok=True)
    with dest.open("wb") as out:
        out.write(encode_header(header))
        for path, size in builder.bodies:
            _copy_body(path, size, out)
    return dest


def read_header(package: Path) -> tuple[dict[str, Any], int]:
    """Return ``(header, data_offset)`` for an asar file."""
    with package.open("rb") as fh:
        size_pickle = fh.read(_SIZE_PICKLE.size)
        if len(size_pickle) != _SIZE_PICKLE.size:
            raise AsarError(f"{package}: truncated size pickle")
        _, header_size = _SIZE_PICKLE.unpack(size_pickle)
        header_pickle = fh.read(header_size)
    if len(header_pickle) != header_size or header_size < 8:
        raise AsarError(f"{package}: truncated header")
    (json_len,) = struct.unpack_from("<i", header_pickle, 4)
    raw = header_pickle[8 : 8 + json_len]
    if json_len < 0 or len(raw) != json_len:
        raise AsarError(f"{package}: header length mismatch")
    try:
        header = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise AsarError(f"{package}: unreadable header: {exc}") from exc
    return header, _SIZE_PICKLE.size + header_size


def list_package(package: Path) -> list[str]:
    """List every entry path (directories included) in header order."""
    header, _ = read_header(package)
    paths: list[str] = []

    def walk(files: dict[str, Any], prefix: str) -> None:
        for name, node in files.items():
            path = f"{prefix}{name}"
            paths.append(path)
            if "files" in node:
                walk(node["files"], path + "/")

    walk(header.get("files", {}), "")
    return paths


def read_file(package: Path, inner_path: str) -> bytes:
    """Read the body of one regular file stored in the package."""
    header, data_offset = read_header(package)
    node: dict[str, Any] = header
    for part in [p for p in inner_path.split("/") if p]:
        children = node.get("files")
        if children is None or part not in children:
            raise AsarError(f"{inner_path} not found in {package}")
        node = children[part]
    if "size" not in node or "offset" not in node:
        raise AsarError(f"{inner_path} is not a regular file in {package}")

    with package.open("rb") as fh:
        fh.seek(data_offset + int(node["offset"]))
        return fh.read(node["size"])
