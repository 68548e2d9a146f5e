"""Line-level diffing of two text snapshots.

Uses difflib's longest-matching-block algorithm with autojunk disabled, so
the result depends only on the two inputs.

Example:
    >>> changed_line_ranges('a\\nb\\nc\\n', 'a\\nB\\nc\\nd\\n')
    (LineRange(start=2, end=2), LineRange(start=4, end=4))
"""

from __future__ import annotations

import difflib

from change_gate.diff.models import LineRange, merge_ranges


BINARY_SNIFF_BYTES = 8000


def is_binary(content: bytes) -> bool:
    """Return True if content should be treated as an opaque blob.

    A NUL byte in the leading block, or content that is not valid UTF-8,
    marks the blob as binary.
    """
    if b'\x00' in content[:BINARY_SNIFF_BYTES]:
        return True
    try:
        content.decode('utf-8')
    except UnicodeDecodeError:
        return True
    return False


def decode_text(content: bytes) -> str:
    """Decode UTF-8 content, dropping a leading byte order mark."""
    return content.decode('utf-8-sig')


def split_lines(text: str) -> list[str]:
    """Split text into lines on \\n only, the way git and coverage tools number them.

    Form feeds, lone carriage returns and Unicode line separators stay part
    of their line. A trailing newline does not start an extra line.

    Example:
        >>> split_lines('a\\n\\x0cb\\r\\n')
        ['a', '\\x0cb\\r']
    """
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return lines


def whole_file_ranges(text: str) -> tuple[LineRange, ...]:
    """Return a single range covering every line of ``text``, or none if empty."""
    line_count = len(split_lines(text))
    if line_count == 0:
        return ()
    return (LineRange(1, line_count),)


def changed_line_ranges(base_text: str, head_text: str) -> tuple[LineRange, ...]:
    """Compute the head-revision line ranges that differ from the base.

    Replaced and inserted blocks map to their head lines. Pure deletions have
    no head lines and contribute nothing.

    Args:
        base_text: File content at the base revision.
        head_text: File content at the head revision.

    Returns:
        Disjoint, ascending line ranges in head numbering.
    """
    base_lines = split_lines(base_text)
    head_lines = split_lines(head_text)
    matcher = difflib.SequenceMatcher(None, base_lines, head_lines, autojunk=False)

    ranges: list[LineRange] = []
    for tag, _i1, _i2, j1, j2 in matcher.get_opcodes():
        if tag in ('replace', 'insert') and j2 > j1:
            ranges.append(LineRange(j1 + 1, j2))
    return merge_ranges(ranges)
