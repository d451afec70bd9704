"""Extension script discovery.

Candidate directories, in priority order:

1. the override directory (``EXTHOST_EXTENSION_DIR``), if set;
2. ``extensions/`` under every ancestor of the host's install location;
3. ``extensions/`` under the current working directory, only when the host
   is not running from an installed package.

Packaged installs ignore the working directory so a developer's local
scripts never leak into a production run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

EXTENSIONS_DIRNAME = "extensions"
PACKAGED_MARKERS = frozenset({"site-packages", "dist-packages", "node_modules"})


def default_origin() -> Path:
    """Location discovery climbs from: this package's own file."""
    return Path(__file__).resolve()


def is_packaged(origin: Path) -> bool:
    """Whether any ancestor of *origin* is a dependency-installation directory."""
    return any(part in PACKAGED_MARKERS for part in origin.parts)


def candidate_dirs(
    *,
    extension_dir: Path | None,
    origin: Path,
    cwd: Path,
) -> list[Path]:
    candidates: list[Path] = []
    if extension_dir is not None:
        candidates.append(extension_dir)
    candidates.extend(ancestor / EXTENSIONS_DIRNAME for ancestor in origin.parents)
    if not is_packaged(origin):
        candidates.append(cwd / EXTENSIONS_DIRNAME)
    return candidates


def _normalize_suffix(suffix: str) -> str:
    suffix = suffix.lower()
    return suffix if suffix.startswith(".") else f".{suffix}"


def collect_scripts(directories: Iterable[Path], suffix: str) -> list[Path]:
    """Gather matching files from each distinct directory, sorted by path."""
    wanted = _normalize_suffix(suffix)
    seen: set[Path] = set()
    scripts: set[Path] = set()
    for directory in directories:
        if not directory.is_dir():
            continue
        canonical = directory.resolve()
        if canonical in seen:
            continue
        seen.add(canonical)
        try:
            entries = list(canonical.iterdir())
        except OSError:
            logger.debug("Cannot list extension directory %s", canonical, exc_info=True)
            continue
        for entry in entries:
            if entry.is_file() and entry.suffix.lower() == wanted:
                scripts.add(entry)
    return sorted(scripts)


def discover_scripts(
    *,
    extension_dir: Path | None = None,
    suffix: str = ".js",
    origin: Path | None = None,
    cwd: Path | None = None,
) -> list[Path]:
    """Return the sorted, duplicate-free list of extension scripts.

    Missing directories are skipped. The order fixes which script the
    fallback chain consults first.
    """
    dirs = candidate_dirs(
        extension_dir=extension_dir,
        origin=origin or default_origin(),
        cwd=cwd or Path.cwd(),
    )
    scripts = collect_scripts(dirs, suffix)
    logger.debug("Discovered %d extension script(s): %s", len(scripts), scripts)
    return scripts
