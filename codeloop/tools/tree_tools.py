"""
Project tree reading: walk the project root and concatenate every
non-ignored file into one text payload for the model.
"""

import logging
import os
from pathlib import Path

from ..errors import TraversalError
from .path_filter import IgnoreRuleSet, is_ignored

logger = logging.getLogger(__name__)


def _iter_files(root: Path, rules: IgnoreRuleSet):
    """Yield non-ignored files under ``root`` in lexicographic path order.

    Depth-first over an explicit stack instead of recursion. Directory
    symlinks are not followed; file symlinks are yielded only if they resolve
    to a file inside ``root``.
    """
    real_root = os.path.realpath(root)
    stack: list[tuple[Path, bool]] = [(root, True)]
    while stack:
        current, is_dir = stack.pop()
        if not is_dir:
            yield current
            continue

        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise TraversalError(current, exc.strerror or str(exc)) from exc

        children: list[tuple[Path, bool]] = []
        for entry in entries:
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                children.append((path, True))
                continue
            if is_ignored(path.as_posix(), rules):
                logger.debug("Ignoring %s", path)
                continue
            if entry.is_symlink():
                target = os.path.realpath(path)
                if not target.startswith(real_root + os.sep) or not os.path.isfile(target):
                    logger.debug("Skipping symlink %s -> %s", path, target)
                    continue
            children.append((path, False))

        # Reversed so the smallest name is popped first.
        stack.extend(reversed(children))


def read_tree(root, rules: IgnoreRuleSet) -> str:
    """Concatenate the contents of every non-ignored file under ``root``.

    Each file's full text is followed by a single newline. Files are visited
    in lexicographic order, so the payload is stable for an unchanged tree
    regardless of the order the filesystem reports entries in. Bytes that are
    not valid UTF-8 are replaced with U+FFFD. Any unreadable file aborts
    the whole read with TraversalError; a partial payload is never returned. No truncation is applied.
    """
    root = Path(os.path.abspath(root))
    chunks: list[str] = []
    for path in _iter_files(root, rules):
        try:
            with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
                chunks.append(f.read())
        except OSError as exc:
            raise TraversalError(path, exc.strerror or str(exc)) from exc
        chunks.append("\n")
    return "".join(chunks)


async def read_project(root: Path, rules: IgnoreRuleSet) -> str:
    """Tool behavior for readProject: return the whole project as text."""
    payload = read_tree(root, rules)
    size = len(payload.encode("utf-8"))
    print(f"  [readProject] read {size} bytes")
    logger.info("readProject returned %d bytes from %s", size, root)
    return payload
