"""
File operation tools: batch write under the project root.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..errors import BatchValidationError, ToolError
from .base import sanitize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileWriteRequest:
    relative_path: str
    contents: str


def build_requests(relative_paths, contents_array) -> list[FileWriteRequest]:
    """Pair up two parallel sequences into write requests.

    Raises:
        BatchValidationError: lengths differ or an entry is not a string.
    """
    relative_paths = list(relative_paths)
    contents_array = list(contents_array)
    if len(relative_paths) != len(contents_array):
        raise BatchValidationError(
            f"relativePaths has {len(relative_paths)} entries but contentsArray "
            f"has {len(contents_array)}; nothing was written"
        )
    for i, (path, content) in enumerate(zip(relative_paths, contents_array)):
        if not isinstance(path, str):
            raise BatchValidationError(f"relativePaths[{i}] is not a string")
        if not isinstance(content, str):
            raise BatchValidationError(f"contentsArray[{i}] is not a string")
    return [FileWriteRequest(p, c) for p, c in zip(relative_paths, contents_array)]


def _check_targets(root, requests: list[FileWriteRequest], targets: list[Path]) -> None:
    """Reject targets that could not be written without touching the tree.

    A target may not be an existing directory, and every ancestor up to the
    root must either be missing or a directory that no other request in the
    batch writes as a file.
    """
    real_root = Path(os.path.realpath(root))
    written = {target: i for i, target in enumerate(targets)}
    for i, target in enumerate(targets):
        rel = requests[i].relative_path
        if target.is_dir():
            raise BatchValidationError(f"relativePaths[{i}] '{rel}' is an existing directory")
        parent = target.parent
        while parent != real_root and parent != parent.parent:
            if parent in written:
                other = requests[written[parent]].relative_path
                raise BatchValidationError(
                    f"relativePaths[{i}] '{rel}' is inside '{other}', "
                    f"which this batch also writes as a file"
                )
            if os.path.lexists(parent) and not os.path.isdir(parent):
                raise BatchValidationError(
                    f"relativePaths[{i}] '{rel}' needs "
                    f"'{parent.relative_to(real_root).as_posix()}' to be a directory, "
                    f"but it is an existing file"
                )
            parent = parent.parent


def write_files(root, relative_paths, contents_array) -> list[Path]:
    """Write a batch of files under ``root``.

    Every target is validated before the first write, so a single bad path
    leaves the filesystem untouched. Parent directories are created as needed
    and existing files are overwritten without backup.

    Returns the resolved paths written, in request order.
    """
    requests = build_requests(relative_paths, contents_array)
    targets = [
        sanitize_path(root, req.relative_path, index=i)
        for i, req in enumerate(requests)
    ]
    _check_targets(root, requests, targets)

    for req, target in zip(requests, targets):
        try:
            os.makedirs(target.parent, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(req.contents)
        except OSError as exc:
            raise ToolError(f"Cannot write '{req.relative_path}': {exc}") from exc
        logger.debug("Wrote %d chars to %s", len(req.contents), target)
    return targets


async def write_many(root: Path, relative_paths: list, contents_array: list) -> str:
    """Tool behavior for writeFiles: write the batch and acknowledge."""
    write_files(root, relative_paths, contents_array)
    for rel in relative_paths:
        print(f"  [writeFiles] wrote {rel}")
    logger.info("writeFiles wrote %d file(s) under %s", len(relative_paths), root)
    return "Done"
