from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from filelink.reference import FileReference, FileReferenceError


@dataclass(frozen=True)
class Mount:
    name: str
    root: Path
    read_only: bool


class MountError(RuntimeError):
    pass


class UnknownMountError(MountError):
    pass


def _project_relative(path: str) -> Path:
    # filelink/mounts.py -> project root
    here = Path(__file__).resolve()
    return (here.parents[1] / path).resolve()


def mounts_config_path() -> Path:
    p = os.environ.get("FILELINK_MOUNTS_CONFIG")
    if p:
        return Path(p).expanduser().resolve()
    return _project_relative("config/mounts.json")


def load_mounts() -> dict[str, Mount]:
    """
    Load mounts from the JSON config file.

    Format: {"mounts": [{"name": "docs", "path": "~/docs", "readOnly": false}]}
    Relative roots resolve against the config file's directory. When the file
    is missing, FILELINK_ROOT (if set) is exposed as a single mount named
    FILELINK_ROOT_NAME (default "root").
    """
    cfg_path = mounts_config_path()
    if not cfg_path.exists():
        return _env_mount()
    try:
        raw = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise MountError(f"Unable to read mounts config {cfg_path}: {e}") from e
    mounts = (raw.get("mounts") or []) if isinstance(raw, dict) else []
    out: dict[str, Mount] = {}
    for m in mounts:
        if not isinstance(m, dict):
            continue
        name = str(m.get("name") or "").strip()
        if not name or "/" in name:
            continue
        root = Path(str(m.get("path") or "")).expanduser()
        if not root.is_absolute():
            root = (cfg_path.parent / root).resolve()
        else:
            root = root.resolve()
        read_only = bool(m.get("readOnly", False))
        out[name] = Mount(name=name, root=root, read_only=read_only)
    return out


def _env_mount() -> dict[str, Mount]:
    root_raw = os.environ.get("FILELINK_ROOT", "").strip()
    if not root_raw:
        return {}
    name = os.environ.get("FILELINK_ROOT_NAME", "root").strip() or "root"
    read_only = os.environ.get("FILELINK_ROOT_READ_ONLY", "").strip().lower() in ("1", "true", "yes")
    root = Path(root_raw).expanduser().resolve()
    return {name: Mount(name=name, root=root, read_only=read_only)}


def _within(root: Path, candidate: Path) -> bool:
    try:
        common = os.path.commonpath([str(root), str(candidate)])
    except ValueError as e:
        raise MountError(f"Invalid path: {e}") from e
    return Path(common) == root


def _safe_join(root: Path, subpath: str) -> Path:
    """
    ``root / subpath`` with ".." collapsed but symlinks left in place.

    Both the lexical path and its symlink-resolved target must stay under the
    root; the lexical one is returned so a link is deleted or replaced rather
    than the file it points at.
    """
    root = root.resolve()
    lexical = Path(os.path.normpath(root / subpath))
    if not _within(root, lexical) or not _within(root, lexical.resolve()):
        raise MountError("Path escapes mount root")
    return lexical


def get_mount(mount_name: str, mounts: Optional[dict[str, Mount]] = None) -> Mount:
    mounts = load_mounts() if mounts is None else mounts
    mount = mounts.get(mount_name)
    if mount is None:
        raise UnknownMountError(f"Unknown mount: {mount_name}")
    return mount


def resolve_mount_path(mount_name: str, subpath: str, mounts: Optional[dict[str, Mount]] = None) -> tuple[Mount, Path]:
    mount = get_mount(mount_name, mounts)
    return mount, _safe_join(mount.root, subpath.lstrip("/"))


def mount_reference(mount_name: str, subpath: str, mounts: Optional[dict[str, Mount]] = None) -> tuple[Mount, str]:
    """
    The ``file://`` reference for ``<mount>/<subpath>``.

    A trailing "/" on ``subpath`` is kept on the reference so a PUT can tell
    "create this directory" from "create this file".
    """
    mount, p = resolve_mount_path(mount_name, subpath, mounts)
    try:
        uri = str(FileReference.from_path(p))
    except FileReferenceError as e:
        raise MountError(str(e)) from e
    if subpath.endswith("/") and not uri.endswith("/"):
        uri += "/"
    return mount, uri


def public_path(mount: Mount, reference: str) -> Optional[str]:
    """
    Map a child ``file://`` reference back to "<mount>/<relative path>".
    """
    f = FileReference(reference).file
    if f is None:
        return None
    try:
        rel = f.relative_to(mount.root)
    except ValueError:
        return None
    suffix = "/" if reference.endswith("/") else ""
    rel_s = rel.as_posix()
    if rel_s == ".":
        return f"{mount.name}/"
    return f"{mount.name}/{rel_s}{suffix}"
