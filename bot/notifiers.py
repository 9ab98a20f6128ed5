"""
DiscordNotifier — posts token vision notices to a Discord channel.
"""

import logging
from typing import Optional

import discord

from tools.notifier import Severity

logger = logging.getLogger("DiscordNotifier")


class DiscordNotifier:
    """Notifier that writes to one channel, looked up on every send.

    The channel may not be in the cache yet when the bot starts, so the
    lookup is deferred until a message actually needs to go out.
    """

    def __init__(self, bot: discord.Client, channel_id: Optional[str]):
        self.bot = bot
        self.channel_id = channel_id

    async def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        if not self.channel_id:
            logger.warning(f"GAME_TABLE_CHANNEL_ID not set — notice logged only: {message}")
            return
        channel = self.bot.get_channel(int(self.channel_id))
        if channel is None:
            logger.warning(f"Could not find channel {self.channel_id} — notice logged only: {message}")
            return
        text = f"*{message}*" if severity == Severity.INFO else f"⚠️ {message}"
        try:
            await channel.send(text)
        except discord.HTTPException as e:
            logger.error(f"Failed to post notice to Discord: {e}")
