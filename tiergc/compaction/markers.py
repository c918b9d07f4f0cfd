"""Encoding and parsing of [brain#<id>: <description>] markers."""

import re
from typing import NamedTuple

MARKER_PATTERN = re.compile(r"\[brain#(\d+):\s*([^\]]+)\]")
_MARKER_PREFIX = re.compile(r"\[brain#\d+:")


class Marker(NamedTuple):
    brain_id: int
    description: str


def create_marker(brain_id: int, description: str) -> str:
    """Build a marker referencing content stored in long-term memory."""
    return f"[brain#{brain_id}: {description}]"


def parse_markers(text: str) -> list[Marker]:
    """
    Find every well-formed marker in text.

    Malformed markers (missing colon, non-numeric id, unclosed bracket) are
    skipped.

    Args:
        text: Text to scan.

    Returns:
        Markers in order of appearance.
    """
    markers: list[Marker] = []
    if not text:
        return markers

    for match in MARKER_PATTERN.finditer(text):
        try:
            brain_id = int(match.group(1), 10)
        except ValueError:
            continue
        markers.append(Marker(brain_id, match.group(2).strip()))

    return markers


def has_markers(text: str) -> bool:
    return bool(text) and _MARKER_PREFIX.search(text) is not None
