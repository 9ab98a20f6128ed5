"""
Token Vision — Discord Bot Client

Core bot setup: environment, logging, the Foundry relay client, the game
clock and the TokenVisionService. All !commands live in Cogs (bot/cogs/).
"""

import os
import asyncio
import logging
import discord
from discord.ext import commands
from dotenv import load_dotenv

from foundry.client import FoundryClient
from foundry.chat import FoundryChatNotifier
from tools.effect_scheduler import EffectScheduler
from tools.game_clock import GameClock
from tools.notifier import CompositeNotifier, LogNotifier
from tools.token_vision import TokenVisionService
from bot.notifiers import DiscordNotifier

logger = logging.getLogger("Vision_Bot")

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
load_dotenv()
DISCORD_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
GAME_TABLE_CHANNEL_ID = os.getenv("GAME_TABLE_CHANNEL_ID")
GAME_CLOCK_ENABLED = os.getenv("GAME_CLOCK_ENABLED", "true").lower() not in ("0", "false", "no")
VISION_CHAT_TARGET = os.getenv("VISION_CHAT_TARGET", "foundry").lower()

try:
    GAME_CLOCK_SECONDS_PER_MINUTE = float(os.getenv("GAME_CLOCK_SECONDS_PER_MINUTE", "0") or 0)
except ValueError:
    GAME_CLOCK_SECONDS_PER_MINUTE = 0.0

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
if not os.path.exists("logs"):
    os.makedirs("logs")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.FileHandler("logs/token_vision.log", encoding="utf-8"),
        logging.StreamHandler(),
    ],
)

if GAME_CLOCK_SECONDS_PER_MINUTE < 0:
    logger.warning("GAME_CLOCK_SECONDS_PER_MINUTE is negative — clock will be advanced manually.")
    GAME_CLOCK_SECONDS_PER_MINUTE = 0.0

# ---------------------------------------------------------------------------
# Discord Bot Instance
# ---------------------------------------------------------------------------
intents = discord.Intents.default()
intents.message_content = True
bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

# ---------------------------------------------------------------------------
# Foundry VTT Connection (async connect happens in on_ready)
# ---------------------------------------------------------------------------
foundry_client = FoundryClient()

# ---------------------------------------------------------------------------
# Game Clock & Scheduler
# ---------------------------------------------------------------------------
game_clock = GameClock() if GAME_CLOCK_ENABLED else None
if game_clock is None:
    logger.warning("GAME_CLOCK_ENABLED=false — durations will be rejected.")
scheduler = EffectScheduler(game_clock)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
def build_notifier(target: str):
    """Pick the chat sink(s) for fire warnings and errors."""
    sinks = []
    if target in ("foundry", "both"):
        sinks.append(FoundryChatNotifier(foundry_client))
    if target in ("discord", "both"):
        sinks.append(DiscordNotifier(bot, GAME_TABLE_CHANNEL_ID))
    if not sinks:
        logger.warning(f"Unknown VISION_CHAT_TARGET '{target}' — notices go to the log only.")
        return LogNotifier()
    return CompositeNotifier(sinks + [LogNotifier()])


notifier = build_notifier(VISION_CHAT_TARGET)
vision_service = TokenVisionService(scheduler, notifier)

# ---------------------------------------------------------------------------
# Attach shared services to bot so cogs can access them via self.bot
# ---------------------------------------------------------------------------
bot.foundry_client = foundry_client
bot.game_clock = game_clock
bot.scheduler = scheduler
bot.vision_service = vision_service


@bot.event
async def on_ready():
    logger.info(f"Logged in as {bot.user} (ID: {bot.user.id})")

    if await foundry_client.connect():
        logger.info("Foundry VTT connected.")
    else:
        logger.warning("Foundry VTT not reachable — !vision is unavailable until it reconnects.")

    if game_clock is not None and GAME_CLOCK_SECONDS_PER_MINUTE > 0:
        game_clock.start(GAME_CLOCK_SECONDS_PER_MINUTE)


@bot.event
async def on_command_error(ctx, error):
    if isinstance(error, commands.CommandNotFound):
        return
    if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
        await ctx.send(f"Usage: `!{ctx.command.name} {ctx.command.signature}`")
        return
    logger.error(f"Command !{ctx.command} failed: {error}", exc_info=error)
    await ctx.send("Something went wrong with that command.")


# ---------------------------------------------------------------------------
# Cog Loading & Entry Point
# ---------------------------------------------------------------------------
async def load_cogs():
    """Load all Cog extensions."""
    await bot.load_extension("bot.cogs.vision_cog")
    logger.info("All Cogs loaded.")


async def main():
    """Async entry point — load cogs then start the bot."""
    try:
        async with bot:
            await load_cogs()
            await bot.start(DISCORD_TOKEN)
    finally:
        if game_clock is not None:
            await game_clock.stop()
        await foundry_client.close()


def run():
    """Synchronous entry point for scripts."""
    if not DISCORD_TOKEN:
        print("Error: DISCORD_BOT_TOKEN not found via os.getenv")
        return
    asyncio.run(main())


if __name__ == "__main__":
    run()
