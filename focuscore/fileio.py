"""Workspace file access.

Readers treat a missing or blank file as empty. Writers replace the target
in one rename, so a reader never sees half a document. ``locked`` guards a
whole read-modify-write cycle (append a session, upsert an entry) against a
second process doing the same on the same file.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any, Iterator

import yaml


def _read_text(path: Path) -> str | None:
    if not path.exists():
        return None
    text = path.read_text(encoding="utf-8")
    return text if text.strip() else None


def read_json(path: Path) -> Any:
    """Decoded JSON document, or {} for a missing/blank file.

    The top-level value is returned as stored; callers check its shape.
    """
    text = _read_text(path)
    return {} if text is None else json.loads(text)


def read_yaml(path: Path) -> dict[str, Any]:
    text = _read_text(path)
    if text is None:
        return {}
    loaded = yaml.safe_load(text)
    return loaded if isinstance(loaded, dict) else {}


@contextmanager
def locked(path: Path) -> Iterator[None]:
    """Hold an exclusive flock on the ``.<name>.lock`` file beside *path*.

    Not reentrant: a second ``locked(path)`` in the same process blocks.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path.with_name(f".{path.name}.lock"), "a") as lock:
        fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock.fileno(), fcntl.LOCK_UN)


def _replace(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        with suppress(FileNotFoundError):
            os.unlink(temp_path)
        raise


def write_json_atomic(path: Path, data: Any) -> None:
    _replace(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    _replace(path, yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))
