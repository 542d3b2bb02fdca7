"""
Loads the code -> Discord user id table (ids.txt).

Each line holds a code and a Discord id separated by whitespace:

    A12345 123456789012345678
    b67890 876543210987654321

Extra tokens on a line are ignored, lines with fewer than two tokens are
skipped, and a missing or unreadable file just means nobody gets mentioned.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

log = logging.getLogger(__name__)


def parse_ids(text: str) -> Dict[str, str]:
    ids: Dict[str, str] = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        ids[parts[0].upper()] = parts[1]
    return ids


def load_ids(path: str | Path) -> Dict[str, str]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.warning("Could not read ids file %s (%s); continuing without mentions", path, e)
        return {}
    return parse_ids(text)
