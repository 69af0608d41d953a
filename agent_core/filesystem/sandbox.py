from __future__ import annotations

from pathlib import Path


class SandboxPathError(ValueError):
    pass


def _is_relative_to(path: Path, base: Path) -> bool:
    try:
        path.relative_to(base)
        return True
    except ValueError:
        return False


def _check_symlinks(candidate: Path, base: Path) -> None:
    current = base
    for part in candidate.relative_to(base).parts:
        current = current / part
        if current.is_symlink():
            resolved = current.resolve()
            if not _is_relative_to(resolved, base):
                raise SandboxPathError("Symlink escape detected")


def safe_join(base_dir: Path, name: str) -> Path:
    """Resolve ``name`` as a direct entry of ``base_dir``.

    Rejects parent references, nested paths and symlinks that point outside
    the base. The returned path is absolute and resolved.
    """
    if not name or "\x00" in name:
        raise SandboxPathError("Invalid filename")
    if ".." in name:
        raise SandboxPathError("Path traversal detected")
    base_dir = base_dir.resolve()
    candidate = base_dir / name
    try:
        relative_parts = candidate.relative_to(base_dir).parts
    except ValueError as exc:
        raise SandboxPathError("Path traversal detected") from exc
    if len(relative_parts) != 1:
        raise SandboxPathError("Nested paths are not allowed")
    resolved = candidate.resolve()
    if not _is_relative_to(resolved, base_dir):
        raise SandboxPathError("Path traversal detected")
    _check_symlinks(candidate, base_dir)
    return resolved
