"""
Vision Views — the Token Vision Configuration dialog.

Contains:
  - VisionConfigView: vision type + light source selects, Apply / Cancel buttons
  - DurationModal: optional duration in minutes, submitted on Apply

The dialog is shown → confirmed | cancelled. Only a confirmed dialog
touches tokens; cancel and timeout do nothing.
"""

import logging
from typing import Awaitable, Callable, List, Optional, Sequence

import discord
from discord import ButtonStyle

from models.token_vision import ApplyReport, Preset, TokenSubject, VisionRequest
from tools.presets import LIGHT_PRESETS, VISION_PRESETS, get_light_preset, get_vision_preset
from tools.token_vision import TokenVisionService

logger = logging.getLogger("VisionViews")

TokenSource = Callable[[], Awaitable[List[TokenSubject]]]

DIALOG_TITLE = "Token Vision Configuration"


def build_options(catalog: Sequence[Preset], selected: int = 0) -> List[discord.SelectOption]:
    """Select options for a preset catalog. The value is the catalog index."""
    return [
        discord.SelectOption(label=preset.name[:100], value=str(index), default=(index == selected))
        for index, preset in enumerate(catalog[:25])  # Discord max 25 options
    ]


def format_report(report: ApplyReport, request: VisionRequest) -> str:
    """One chat message summarizing what the dialog did."""
    vision = get_vision_preset(request.vision_index)
    light = get_light_preset(request.light_index)
    lines = [f"**Vision:** {vision.name} | **Light:** {light.name}"]
    if report.updated:
        lines.append(f"Updated: {', '.join(report.updated)}")
    if report.scheduled:
        lines.append(f"Expires in {request.duration_minutes} game minutes: {', '.join(report.scheduled)}")
    if report.failed:
        lines.append(f"Failed: {', '.join(report.failed)}")
    for error in dict.fromkeys(report.errors):
        lines.append(f"⚠️ {error}")
    return "\n".join(lines)


# ======================================================================
# Modal
# ======================================================================

class DurationModal(discord.ui.Modal, title=DIALOG_TITLE):
    """Collects the optional duration and runs the change."""

    duration = discord.ui.TextInput(
        label="Duration in Minutes",
        placeholder="Leave blank for no expiry",
        required=False,
        max_length=6,
    )

    def __init__(self, view: "VisionConfigView"):
        super().__init__()
        self.config_view = view

    async def on_submit(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        request = VisionRequest(
            vision_index=self.config_view.vision_index,
            light_index=self.config_view.light_index,
            duration_minutes=self.duration.value,
        )
        try:
            report = await self.config_view.confirm(request)
        except Exception as e:
            logger.error(f"Vision change failed: {e}", exc_info=True)
            await interaction.followup.send(f"Vision change failed: {e}")
            return
        await interaction.followup.send(format_report(report, request))


# ======================================================================
# Dialog
# ======================================================================

class VisionConfigView(discord.ui.View):
    """Vision type / light source pickers with Apply and Cancel buttons.

    Tokens are fetched from `token_source` when the dialog is confirmed, so
    the current selection at that moment is what gets changed.
    """

    def __init__(self, service: TokenVisionService, token_source: TokenSource, timeout: float = 180):
        super().__init__(timeout=timeout)
        self.service = service
        self.token_source = token_source
        self.vision_index: int = 0
        self.light_index: int = 0
        self.outcome: Optional[str] = None  # "confirmed" | "cancelled"

    async def confirm(self, request: VisionRequest) -> ApplyReport:
        """Apply the request to the currently selected tokens."""
        self.outcome = "confirmed"
        self.stop()
        tokens = await self.token_source()
        return await self.service.apply(
            tokens,
            vision_index=request.vision_index,
            light_index=request.light_index,
            duration_minutes=request.duration_minutes,
        )

    def cancel(self) -> None:
        self.outcome = "cancelled"
        self.stop()

    async def on_timeout(self) -> None:
        if self.outcome is None:
            self.outcome = "cancelled"
            logger.info("Vision dialog timed out — no changes made.")

    @discord.ui.select(placeholder="Vision Type", options=build_options(VISION_PRESETS), row=0)
    async def vision_select(self, interaction: discord.Interaction, select: discord.ui.Select):
        self.vision_index = VisionRequest(vision_index=select.values[0]).vision_index
        await interaction.response.defer()

    @discord.ui.select(placeholder="Light Source", options=build_options(LIGHT_PRESETS), row=1)
    async def light_select(self, interaction: discord.Interaction, select: discord.ui.Select):
        self.light_index = VisionRequest(light_index=select.values[0]).light_index
        await interaction.response.defer()

    @discord.ui.button(label="Apply Changes", style=ButtonStyle.success, emoji="✅", row=2)
    async def apply_button(self, interaction: discord.Interaction, button):
        await interaction.response.send_modal(DurationModal(self))

    @discord.ui.button(label="Cancel Changes", style=ButtonStyle.secondary, emoji="❌", row=2)
    async def cancel_button(self, interaction: discord.Interaction, button):
        self.cancel()
        await interaction.response.edit_message(content="Token vision unchanged.", view=None)
