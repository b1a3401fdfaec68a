# devfiles/filemanager/paths.py
"""Remote path resolution.

Remote paths are always absolute, ``/``-separated and normalized: no empty
components, no ``.``/``..`` and no trailing separator except for the root.
Nothing here touches the network.
"""

import posixpath
from typing import Iterable, List, Sequence

ROOT = "/"


def _apply(stack: List[str], segment: str) -> List[str]:
    if segment.startswith("/"):
        stack = []
    for part in segment.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if stack:
                stack.pop()
            continue
        stack.append(part)
    return stack


def resolve(base: str, segments: Sequence[str]) -> str:
    """Resolve ``segments`` against the remote path ``base``.

    An empty ``segments`` returns ``base`` untouched. A segment starting with
    ``/`` restarts resolution at the root, and ``..`` never climbs above it.
    """
    if not segments:
        return base
    stack = _apply([], base or ROOT)
    for segment in segments:
        stack = _apply(stack, segment)
    return ROOT + "/".join(stack)


def target_path(*segments: str) -> str:
    """Resolve ``segments`` from the root; ``target_path()`` is ``/``."""
    return resolve(ROOT, list(segments) or [ROOT])


def join(directory: str, filename: str) -> str:
    """Absolute path of ``filename`` inside ``directory``."""
    return resolve(directory, [filename])


def basename(path: str) -> str:
    return posixpath.basename(target_path(path))


def parent(path: str) -> str:
    return resolve(path, [".."])


def breadcrumb(path: str) -> List[str]:
    """Navigation segments of ``path``: ``/media/dev`` -> ``["/", "media", "dev"]``."""
    normalized = target_path(path)
    return [ROOT] + [part for part in normalized.split("/") if part]


def from_breadcrumb(segments: Iterable[str]) -> str:
    """Inverse of :func:`breadcrumb`; one or zero segments mean the root."""
    segments = list(segments)
    if len(segments) <= 1:
        return ROOT
    return target_path(*segments)
