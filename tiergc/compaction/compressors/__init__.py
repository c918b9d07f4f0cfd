"""Per-role compression policies."""

from tiergc.compaction.compressors.assistant import compute_assistant_edits
from tiergc.compaction.compressors.system import compute_system_edits
from tiergc.compaction.compressors.tool_output import compress_tool_output

__all__ = [
    "compress_tool_output",
    "compute_assistant_edits",
    "compute_system_edits",
]
