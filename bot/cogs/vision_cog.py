"""
Vision Cog — token vision and game clock commands.

Commands: !vision, !presets, !clock, !advance, !foundry
"""

import logging
import discord
from discord.ext import commands

from foundry.errors import FoundryError
from foundry.token import FoundryToken
from tools.presets import LIGHT_PRESETS, VISION_PRESETS, format_catalog
from tools.vision_errors import NoSubjectSelected
from bot.views.vision_views import DIALOG_TITLE, VisionConfigView

logger = logging.getLogger("Vision_Cog")


class TokenVisionCog(commands.Cog, name="Token Vision"):
    """Configure token vision/light from Discord and drive the game clock."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.foundry = bot.foundry_client
        self.service = bot.vision_service
        self.clock = bot.game_clock

    async def _selected_tokens(self):
        return await FoundryToken.selected(self.foundry)

    # ------------------------------------------------------------------
    # !vision
    # ------------------------------------------------------------------
    @commands.command(name="vision")
    async def vision_cmd(self, ctx):
        """Open the Token Vision Configuration dialog for the selected tokens."""
        if not self.foundry.is_connected and not await self.foundry.connect():
            await ctx.send("Foundry VTT not connected. Cannot change token vision.")
            return

        try:
            tokens = await self._selected_tokens()
        except FoundryError as e:
            logger.error(f"Could not read token selection: {e}", exc_info=True)
            await ctx.send(f"Could not read the token selection from Foundry: {e}")
            return

        if not tokens:
            await ctx.send(str(NoSubjectSelected()))
            return

        names = ", ".join(t.name for t in tokens)
        view = VisionConfigView(self.service, self._selected_tokens)
        await ctx.send(f"**{DIALOG_TITLE}** — selected: {names}", view=view)

    # ------------------------------------------------------------------
    # !presets
    # ------------------------------------------------------------------
    @commands.command(name="presets")
    async def presets_cmd(self, ctx):
        """List the vision types and light sources."""
        embed = discord.Embed(title="Token Vision Presets", color=discord.Color.dark_gold())
        embed.add_field(name="Vision Type", value=format_catalog(VISION_PRESETS)[:1024], inline=False)
        embed.add_field(name="Light Source", value=format_catalog(LIGHT_PRESETS)[:1024], inline=False)
        await ctx.send(embed=embed)

    # ------------------------------------------------------------------
    # !clock
    # ------------------------------------------------------------------
    @commands.command(name="clock")
    async def clock_cmd(self, ctx, state: str = ""):
        """Show the game clock, or turn it on/off with `!clock on|off`."""
        if self.clock is None:
            await ctx.send("No game clock is installed (GAME_CLOCK_ENABLED=false).")
            return

        state = state.lower()
        if state in ("on", "start", "activate"):
            self.clock.activate()
        elif state in ("off", "stop", "deactivate"):
            self.clock.deactivate()

        status = self.clock.describe()
        lines = [
            f"**Minute:** {status['minute']:g}",
            f"**Active:** {'yes' if status['active'] else 'no'}",
            f"**Ticking:** {'yes' if status['ticking'] else 'no (advance with !advance)'}",
            f"**Pending effects:** {status['pending']}",
        ]
        for effect in self.clock.pending[:10]:
            lines.append(f"• minute {effect.fire_at:g}: {effect.label}")
        await ctx.send("\n".join(lines))

    # ------------------------------------------------------------------
    # !advance
    # ------------------------------------------------------------------
    @commands.command(name="advance")
    async def advance_cmd(self, ctx, minutes: int):
        """Advance game time by N minutes and fire any effects that come due."""
        if self.clock is None:
            await ctx.send("No game clock is installed (GAME_CLOCK_ENABLED=false).")
            return
        if minutes <= 0:
            await ctx.send("Minutes must be a positive number.")
            return
        if not self.clock.active:
            await ctx.send("The game clock is off. Turn it on with `!clock on` first.")
            return

        fired = await self.clock.advance(minutes)
        msg = f"Advanced {minutes} minute(s) — now minute {self.clock.now:g}."
        if fired:
            msg += "\n" + "\n".join(f"• {effect.label}" for effect in fired)
        await ctx.send(msg)

    # ------------------------------------------------------------------
    # !foundry — health check / reconnect
    # ------------------------------------------------------------------
    @commands.command(name="foundry")
    async def foundry_status_cmd(self, ctx):
        """Show Foundry VTT connection status, reconnecting if the relay is back."""
        status = await self.foundry.health_check()
        relay_ok = status.get("relay_reachable", False)
        foundry_ok = status.get("foundry_connected", False)

        if relay_ok and foundry_ok and not self.foundry.is_connected:
            foundry_ok = await self.foundry.connect()

        if relay_ok and foundry_ok:
            color, overall = discord.Color.green(), "Connected"
        elif relay_ok:
            color, overall = discord.Color.orange(), "Relay OK — Foundry Offline"
        else:
            color, overall = discord.Color.red(), "Disconnected"

        embed = discord.Embed(title="Foundry VTT Status", description=overall, color=color)
        embed.add_field(name="Relay Server", value="Online" if relay_ok else "Offline", inline=True)
        embed.add_field(name="Foundry VTT", value="Connected" if foundry_ok else "Not Connected", inline=True)
        embed.add_field(name="Client ID", value=self.foundry.client_id or "N/A", inline=True)
        if status.get("error"):
            embed.add_field(name="Error", value=status["error"][:1024], inline=False)
        await ctx.send(embed=embed)


async def setup(bot: commands.Bot):
    await bot.add_cog(TokenVisionCog(bot))
