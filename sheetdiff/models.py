from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple, Union

Cell = Union[str, int, float, bool, None]
Row = Tuple[Cell, ...]
Snapshot = Tuple[Row, ...]


@dataclass
class RowChange:
    index: int
    row: Row


class CycleError(Exception):
    """
    Base for everything a poll cycle can fail with.

    snapshot is set when the failure happened after a successful fetch, so the
    loop driver can still retain what was fetched.
    """
    snapshot: Optional[Snapshot] = None
    row_index: Optional[int] = None


class SourceError(CycleError):
    """The Sheets API (or its transport) reported a failure."""


class FetchTimeout(CycleError):
    def __init__(self, timeout_s: float):
        super().__init__(f"Request timed out after {timeout_s:g}s")
        self.timeout_s = timeout_s


class OtherError(CycleError):
    pass


class MalformedRow(OtherError):
    pass


class NotifyFailure(OtherError):
    pass


class SerializationFailure(OtherError):
    pass
