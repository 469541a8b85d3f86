"""
Route path conversion.

Rule files use router-style paths (``/users/:id``, ``/files/*rest``); FastAPI
wants ``/users/{id}`` and ``/files/{rest:path}``. Paths already written with
braces pass through unchanged.
"""

import functools
import re

_NAMED_RE = re.compile(r":(\w+)", re.ASCII)
_CATCH_ALL_RE = re.compile(r"\*(\w+)$", re.ASCII)


@functools.lru_cache(maxsize=1024)
def to_route_path(pattern: str) -> str:
    """
    E.g. "/show/:id" -> "/show/{id}"; "/static/*filepath" -> "/static/{filepath:path}".
    """
    segments = []
    for seg in pattern.split("/"):
        if seg.startswith("*"):
            seg = _CATCH_ALL_RE.sub(r"{\1:path}", seg)
        elif seg.startswith(":"):
            seg = _NAMED_RE.sub(r"{\1}", seg, count=1)
        segments.append(seg)
    return "/".join(segments)
