from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


def iter_matches(root: str | Path, name: str, path_pattern: str) -> Iterator[Path]:
    """Yield files under root named ``name`` (case-insensitive) whose path matches.

    The pattern is searched (not anchored) against the path relative to root,
    using ``/`` separators. Traversal is depth-first with sorted entries so the
    order does not depend on the filesystem.
    """

    root = Path(root)
    wanted = name.lower()
    rx = re.compile(path_pattern)

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for fn in sorted(filenames):
            if fn.lower() != wanted:
                continue
            p = Path(dirpath) / fn
            if not p.is_file():
                continue
            rel = p.relative_to(root).as_posix()
            if rx.search(rel):
                yield p


def locate(
    root: str | Path,
    name: str,
    path_pattern: str,
    *,
    prefer: Optional[str] = None,
) -> Optional[Path]:
    """Return the first matching file, or None.

    With ``prefer`` set, a match that has ``prefer`` as one of its path
    segments wins over earlier matches (e.g. the x86_64 tree on an amd64 host).
    """

    matches = list(iter_matches(root, name, path_pattern))
    if not matches:
        return None
    if prefer:
        for m in matches:
            if prefer in m.relative_to(root).parts[:-1]:
                return m
        logger.debug("No %s under a %r directory; using %s", name, prefer, matches[0])
    return matches[0]
