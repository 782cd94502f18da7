"""Line-oriented CSV tokenizer used by every dataset loader.

The fixture files are read with a deliberately simple rule set:

- a double quote toggles "inside quotes" and is never kept in the field,
- a comma outside quotes ends the field, a comma inside quotes is content,
- every field is stripped of surrounding whitespace,
- the last field is always emitted, even when empty.

There is no escaped-quote support (``""`` just toggles twice). The loaders
depend on this exact behavior, so do not swap in :mod:`csv` here.
"""

from __future__ import annotations

from typing import List


def parse_line(line: str) -> List[str]:
    fields: List[str] = []
    current: List[str] = []
    inside_quotes = False

    for char in line:
        if char == '"':
            inside_quotes = not inside_quotes
        elif char == "," and not inside_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def split_lines(text: str) -> List[str]:
    """Split a blob on any newline convention (``\\n``, ``\\r\\n``, ``\\r``)."""
    return text.splitlines()
