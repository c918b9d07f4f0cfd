"""Compression of tool outputs."""

import re

from tiergc.compaction.markers import create_marker
from tiergc.compaction.types import (
    FALLBACK_WARM_LINES,
    MAX_COLD_SUMMARY_CHARS,
    MAX_WARM_LINES,
    CompressedToolOutput,
    Tier,
)

ERROR_LINE_PATTERN = re.compile(
    r"(?:error|Error|ERROR|ERR!|FAIL|panic|exception|Exception|TypeError|ReferenceError|SyntaxError)"
)
PATH_LINE_PATTERN = re.compile(r"(?:/[\w.-]+){2,}")
FUNCTION_SIGNATURE_PATTERN = re.compile(
    r"(?:function\s+\w+"
    r"|(?:export\s+)?(?:const|let|var)\s+\w+\s*=\s*(?:async\s+)?(?:\(|function)"
    r"|(?:async\s+)?(?:def|class)\s+\w+)"
)
IMPORTANT_LINE_PATTERN = re.compile(r"(?:✓|✗|PASS|FAIL|warn|WARN|deprecated|TODO|FIXME|BREAKING)")

KEY_LINE_PATTERNS = (
    ERROR_LINE_PATTERN,
    PATH_LINE_PATTERN,
    FUNCTION_SIGNATURE_PATTERN,
    IMPORTANT_LINE_PATTERN,
)


def is_key_line(line: str) -> bool:
    """True for lines worth keeping: errors, paths, signatures, status markers."""
    return any(pattern.search(line) for pattern in KEY_LINE_PATTERNS)


def extract_key_lines(output: str, max_lines: int = MAX_WARM_LINES) -> list[str]:
    """
    Pick the most informative lines of a tool output.

    Falls back to the first few non-blank lines when nothing matches.
    """
    lines = output.split("\n")
    key_lines: list[str] = []

    for line in lines:
        if len(key_lines) >= max_lines:
            break
        trimmed = line.strip()
        if trimmed and is_key_line(trimmed):
            key_lines.append(trimmed)

    if not key_lines:
        key_lines = [line.strip() for line in lines[:FALLBACK_WARM_LINES] if line.strip()]

    return key_lines


def build_tool_summary(tool_name: str, output: str) -> str:
    """One-line description of a tool output."""
    if len(output) < MAX_COLD_SUMMARY_CHARS:
        return f"{tool_name}: {output.strip()}"
    line_count = len(output.split("\n"))
    return f"{tool_name} ({line_count} lines, {len(output)} chars)"


def compress_tool_output(
    output: str,
    tool_name: str,
    tier: Tier,
    brain_id: int | None,
) -> CompressedToolOutput | None:
    """
    Compress a tool output for the given tier.

    Args:
        output: The raw tool output.
        tool_name: Name of the tool that produced it.
        tier: Target tier.
        brain_id: Long-term memory id holding the full output, if any.

    Returns:
        The compressed output, or None when the tier keeps it verbatim.
    """
    if tier == "hot":
        return None

    original_length = len(output)

    if tier == "warm":
        key_lines = extract_key_lines(output)
        remaining = len(output.split("\n")) - len(key_lines)
        brain_ref = f" {create_marker(brain_id, tool_name)}" if brain_id is not None else ""

        if remaining > 0:
            suffix = f"\n... [{remaining} more lines{brain_ref}]"
        elif brain_ref:
            suffix = f"\n{brain_ref}"
        else:
            suffix = ""

        return CompressedToolOutput(
            compressed="\n".join(key_lines) + suffix,
            original_length=original_length,
            extracted_lines=len(key_lines),
        )

    summary = build_tool_summary(tool_name, output)
    if brain_id is not None:
        compressed = create_marker(brain_id, summary)
    else:
        compressed = f"[compressed: {summary}]"

    return CompressedToolOutput(
        compressed=compressed,
        original_length=original_length,
        extracted_lines=0,
    )
