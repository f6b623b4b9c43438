"""Resolves an input path into the image files to benchmark."""

import logging
import os
import stat
import time
from pathlib import Path
from typing import Iterable, List, Set, Union

from qrbench.errors import InputAccessDeniedError, InputNotFoundError
from qrbench.models import ImageCandidate

log = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff",
    ".pbm", ".pgm", ".ppm",
})

_FORMAT_ALIASES = {"jpg": "jpeg", "tif": "tiff"}


def normalize_extensions(extensions: Iterable[str]) -> frozenset:
    """Lowercases and dot-prefixes configured extensions ('PNG' -> '.png')."""
    return frozenset(
        ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        for ext in extensions if ext
    )


def format_hint(path: Path) -> str:
    ext = path.suffix[1:].lower()
    return _FORMAT_ALIASES.get(ext, ext)


def _candidate(path: Path) -> ImageCandidate:
    return ImageCandidate(path=path, format_hint=format_hint(path))


def find_images(
    root: Union[str, Path],
    extensions: Iterable[str] = IMAGE_EXTENSIONS,
    follow_links: bool = True,
) -> List[ImageCandidate]:
    """Finds image files under ``root`` in stable lexical order.

    A regular file is returned as-is whatever its extension. Directories
    are walked recursively and filtered by extension, case-insensitively.
    Unreadable subdirectories are logged and skipped.

    Raises:
        InputNotFoundError: ``root`` does not exist.
        InputAccessDeniedError: ``root`` is neither a file nor a readable directory.
    """
    root = Path(root)
    try:
        st = root.stat()
    except FileNotFoundError as e:
        raise InputNotFoundError(f"Path does not exist: {root}") from e
    except PermissionError as e:
        raise InputAccessDeniedError(f"Permission denied: {root}") from e
    except OSError as e:
        # Dangling symlinks and loops land here
        if not os.path.lexists(root):
            raise InputNotFoundError(f"Path does not exist: {root}") from e
        raise InputAccessDeniedError(f"Cannot access {root}: {e}") from e

    if stat.S_ISREG(st.st_mode):
        log.info("Detected single file input: %s", root)
        return [_candidate(root)]

    if not stat.S_ISDIR(st.st_mode):
        raise InputAccessDeniedError(f"Unsupported input type (not a file or directory): {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise InputAccessDeniedError(f"Permission denied: {root}")

    t_start = time.perf_counter()
    log.info("Scanning directory for images: %s", root)
    wanted = normalize_extensions(extensions)
    found: List[Path] = []
    visited: Set[str] = set()

    def on_error(err: OSError):
        log.warning("Skipping unreadable entry %s: %s", err.filename, err.strerror or err)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=follow_links):
        real = os.path.realpath(dirpath)
        if real in visited:
            log.warning("Skipping already visited directory (symlink loop?): %s", dirpath)
            dirnames[:] = []
            continue
        visited.add(real)

        for name in filenames:
            if os.path.splitext(name)[1].lower() not in wanted:
                continue
            p = Path(dirpath) / name
            if not p.is_file():
                log.warning("Skipping broken link or special file: %s", p)
                continue
            found.append(p)

    found.sort()
    elapsed = time.perf_counter() - t_start
    log.info("Found %d image files in %.3fs", len(found), elapsed)
    return [_candidate(p) for p in found]
