"""
Reader for concatenated JSON document streams.

The telemetry log is a sequence of JSON documents separated only by
whitespace (usually one per line). Malformed fragments are yielded as
:class:`Skipped` values and reading resumes at the next line that opens
a new document.

CHANGELOG:
- 2026-10-19: Decode invalid UTF-8 with replacement characters (STORY-015)
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from energy.src.measurement import SkipReason, Skipped

logger = logging.getLogger(__name__)

_DECODER = json.JSONDecoder()


def iter_documents(text: str) -> Iterator[Any | Skipped]:
    """Yield each decoded document of *text* in order.

    Args:
        text: Whole input stream.

    Yields:
        The decoded JSON value of every document, or a :class:`Skipped`
        with reason ``INVALID_JSON`` for each malformed fragment.
    """
    pos = _skip_whitespace(text, 0)
    while pos < len(text):
        try:
            doc, end = _DECODER.raw_decode(text, pos)
        except json.JSONDecodeError as exc:
            resume = text.find("\n{", pos + 1)
            end = len(text) if resume == -1 else resume + 1
            yield Skipped(SkipReason.INVALID_JSON, str(exc), text[pos:end].strip())
        else:
            yield doc
        pos = _skip_whitespace(text, end)


def read_documents(path: Path) -> Iterator[Any | Skipped]:
    """Read *path* as UTF-8 and iterate over its documents.

    Undecodable bytes become U+FFFD so a corrupted document is rejected
    on its own instead of aborting the whole read.
    """
    text = path.read_bytes().decode("utf-8", errors="replace")
    if "\ufffd" in text:
        logger.warning("%s contains bytes that are not valid UTF-8", path)
    return iter_documents(text)


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos
