from __future__ import annotations
"""Blob channels: named byte storage shared by producer and consumer.

``FileBlobChannel`` keeps one ``<name>.bin`` file per blob under a root
directory, which is how the subject and reference programs exchange artifacts
on a shared filesystem. ``MemoryBlobChannel`` backs in-process exchanges and
tests.
"""
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import ArtifactUnavailable

log = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
BLOB_SUFFIX = ".bin"


def _check_name(name: str) -> str:
    if not name or not _NAME_RE.match(name) or name in (".", ".."):
        raise ValueError(f"invalid blob name {name!r}")
    return name


def _check_max_len(max_len: int) -> int:
    if max_len < 0:
        raise ValueError(f"max_len must be non-negative, got {max_len}")
    return max_len


def default_channel_dir() -> Path:
    return Path(os.getenv("PQCINTEROP_CHANNEL_DIR") or tempfile.gettempdir())


class FileBlobChannel:
    def __init__(self, root: Optional[Union[str, Path]] = None) -> None:
        self.root = Path(root) if root is not None else default_channel_dir()

    def path_for(self, name: str) -> Path:
        return self.root / f"{_check_name(name)}{BLOB_SUFFIX}"

    def put(self, name: str, data: bytes) -> None:
        path = self.path_for(name)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(bytes(data))
        except OSError as exc:
            raise ArtifactUnavailable(name, f"cannot write {path}: {exc.strerror or exc}") from exc
        log.debug("put %s (%d bytes) -> %s", name, len(data), path)

    def get(self, name: str, max_len: int) -> bytes:
        path = self.path_for(name)
        _check_max_len(max_len)
        try:
            with path.open("rb") as fh:
                data = fh.read(max_len)
        except FileNotFoundError as exc:
            raise ArtifactUnavailable(name, f"not found at {path}") from exc
        except OSError as exc:
            raise ArtifactUnavailable(name, f"cannot read {path}: {exc.strerror or exc}") from exc
        log.debug("get %s (%d bytes) <- %s", name, len(data), path)
        return data

    def delete(self, name: str) -> None:
        try:
            self.path_for(name).unlink()
        except FileNotFoundError:
            return

    def __repr__(self) -> str:
        return f"FileBlobChannel({str(self.root)!r})"


class MemoryBlobChannel:
    def __init__(self, blobs: Optional[Dict[str, bytes]] = None) -> None:
        self.blobs: Dict[str, bytes] = {}
        for name, data in (blobs or {}).items():
            self.put(name, data)

    def put(self, name: str, data: bytes) -> None:
        self.blobs[_check_name(name)] = bytes(data)

    def get(self, name: str, max_len: int) -> bytes:
        _check_max_len(max_len)
        try:
            return self.blobs[_check_name(name)][:max_len]
        except KeyError:
            raise ArtifactUnavailable(name) from None

    def delete(self, name: str) -> None:
        self.blobs.pop(_check_name(name), None)

    def __contains__(self, name: str) -> bool:
        return name in self.blobs
