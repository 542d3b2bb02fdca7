import asyncio
import logging
import sys
import time
from typing import Callable, Dict, Optional

import aiohttp
from discord.ext import tasks

from sheetdiff.alerts import ErrorAlerter
from sheetdiff.config import ConfigError, Settings, load_settings
from sheetdiff.engine import PollCycle
from sheetdiff.lookup import load_ids
from sheetdiff.models import CycleError, FetchTimeout, NotifyFailure, Snapshot, SourceError
from sheetdiff.notifier import WebhookNotifier
from sheetdiff.processing import dump_values
from sheetdiff.sheets import SOCKET_TIMEOUT_FACTOR, SheetsSource, authenticate

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class SheetDiffBot:
    def __init__(self, settings: Settings, *, source=None, notifier=None,
                 ids: Optional[Dict[str, str]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.settings = settings
        self.session: Optional[aiohttp.ClientSession] = None

        # collaborators; anything not passed in is built in setup_hook
        self.source = source
        self.notifier = notifier
        self.ids = ids
        self.clock = clock

        # the one live snapshot, replaced wholesale after each fetch
        self.snapshot: Snapshot = ()
        self.cycle: Optional[PollCycle] = None
        self.alerter: Optional[ErrorAlerter] = None


    async def setup_hook(self) -> None:
        """
        Connect to Google + Discord, load ids and take the first snapshot.
        Anything failing in here is fatal.
        """
        s = self.settings
        if self.source is None:
            # the installed-app flow may block on the browser handshake
            creds = await asyncio.to_thread(
                authenticate, s.client_secret_file, s.token_file, s.service_account_file
            )
            self.source = SheetsSource.from_credentials(
                creds, s.spreadsheet_id, s.range,
                socket_timeout_s=s.fetch_timeout_s * SOCKET_TIMEOUT_FACTOR,
            )

        if self.notifier is None:
            self.session = aiohttp.ClientSession()
            self.notifier = WebhookNotifier.from_url(s.webhook_url, self.session)

        if self.ids is None:
            self.ids = load_ids(s.ids_file)
        log.info("Loaded ids: %s", self.ids)

        # No timeout here: without a first snapshot there is nothing to diff against
        self.snapshot = await self.source.fetch()
        log.info("Initial data: %s", dump_values(self.snapshot))

        self.cycle = PollCycle(self.source, self.notifier, self.ids, timeout_s=s.fetch_timeout_s)
        self.alerter = ErrorAlerter(self.notifier, window_s=s.alert_throttle_s, clock=self.clock)

        if s.announce_startup:
            await self.announce()


    async def announce(self) -> None:
        content = f"Bot started ({len(self.ids)} custom ids, {len(self.snapshot)} lines in sheet)"
        try:
            await self.notifier.send(content)
        except NotifyFailure as e:
            log.warning("Could not announce startup: %s", e)


    async def tick(self) -> None:
        """
        Runs one poll cycle. Never raises: every failure is logged (and
        maybe alerted) and the next scheduled poll is the retry.
        """
        try:
            self.snapshot = await self.cycle.run(self.snapshot)
        except CycleError as e:
            if e.snapshot is not None:
                # fetched fine but failed mid-diff; keep it so the rows already
                # notified this cycle are not notified again
                self.snapshot = e.snapshot
            await self.handle_error(e)
        except Exception:
            log.exception("Unexpected error in poll cycle")


    async def handle_error(self, e: CycleError) -> None:
        if isinstance(e, SourceError):
            log.error("%s", e)
            await self.alerter.alert()
        elif isinstance(e, FetchTimeout):
            log.warning("%s", e)
        else:
            where = f" (row {e.row_index})" if e.row_index is not None else ""
            log.error("%s: %s%s", type(e).__name__, e, where)


    @tasks.loop(seconds=5)
    async def poll_loop(self) -> None:
        await self.tick()


    @poll_loop.before_loop
    async def before_poll_loop(self) -> None:
        """
        Wait one interval after the initial snapshot before the first poll.
        """
        await asyncio.sleep(self.settings.poll_interval_s)


    async def start(self) -> None:
        await self.setup_hook()
        log.info("Starting loop")
        self.poll_loop.change_interval(seconds=self.settings.poll_interval_s)
        await self.poll_loop.start()


    async def close(self) -> None:
        """
        Clean up resources on shutdown.
        """
        if self.poll_loop.is_running():
            self.poll_loop.cancel()
        if self.session:
            await self.session.close()


async def run_bot(settings: Settings) -> None:
    bot = SheetDiffBot(settings)
    try:
        await bot.start()
    finally:
        await bot.close()


def main():
    """
    Main entry point for the bot.
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        sys.exit(f"Failed to start bot: {e}")

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    try:
        asyncio.run(run_bot(settings))
    except KeyboardInterrupt:
        log.info("Stopped")
    except Exception:
        log.exception("Failed to start bot")
        sys.exit(1)


if __name__ == "__main__":
    main()
