"""
PollCycle: one fetch -> diff -> notify pass.

A cycle:
- fetches the sheet, giving up after a fixed timeout
- compares it row by row with the previous snapshot (same index only)
- sends one webhook message per changed row, in row order
- returns the new snapshot

Any failure is raised as a CycleError subclass. Failures after the fetch
carry the fetched snapshot, and the first failing row stops the cycle: rows
before it were already notified, rows after it are skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict

from sheetdiff.models import CycleError, FetchTimeout, SerializationFailure, Snapshot
from sheetdiff.processing import compose_message, diff_snapshots, dump_values, render_row

log = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 5.0


class PollCycle:
    def __init__(self, source, notifier, ids: Dict[str, str], timeout_s: float = FETCH_TIMEOUT_SECONDS):
        self.source = source
        self.notifier = notifier
        self.ids = ids
        self.timeout_s = timeout_s

    async def fetch(self) -> Snapshot:
        try:
            return await asyncio.wait_for(self.source.fetch(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            raise FetchTimeout(self.timeout_s) from None

    async def run(self, previous: Snapshot) -> Snapshot:
        current = await self.fetch()

        if log.isEnabledFor(logging.DEBUG):
            try:
                log.debug("New data: %s", dump_values(current))
            except SerializationFailure as e:
                log.warning("%s", e)

        try:
            for change in diff_snapshots(previous, current):
                log.info("New row difference found at row %d: %s", change.index, render_row(change.row))
                try:
                    content = compose_message(change.row, self.ids)
                    await self.notifier.send(content)
                except CycleError as e:
                    e.row_index = change.index
                    raise
        except CycleError as e:
            e.snapshot = current
            raise

        return current
