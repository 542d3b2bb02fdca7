"""
Discord webhook notifier for sheetdiff.

Posts plain `{"content": ...}` messages through discord.Webhook.

Notes:
- Uses the bot-wide aiohttp session; the notifier never closes it.
- User mentions (<@id>) in the content are left for Discord to resolve.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp
import discord

from sheetdiff.models import NotifyFailure

log = logging.getLogger(__name__)


class WebhookNotifier:
    def __init__(self, webhook: discord.Webhook):
        self.webhook = webhook

    @classmethod
    def from_url(cls, url: str, session: aiohttp.ClientSession) -> "WebhookNotifier":
        # raises ValueError for anything that isn't a Discord webhook URL
        return cls(discord.Webhook.from_url(url, session=session))

    async def send(self, content: str) -> None:
        try:
            await self.webhook.send(content=content)
        except discord.HTTPException as e:
            raise NotifyFailure(f"Failed to send webhook message: HTTP {e.status} {e.text}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise NotifyFailure(f"Failed to send webhook message: {e!r}") from e
        log.debug("Sent webhook message (%d chars)", len(content))
