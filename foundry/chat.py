"""
FoundryChatNotifier — posts notifications to the Foundry chat log.
"""

import logging
from typing import Any, Dict, Optional

from foundry.client import FoundryClient
from foundry.errors import FoundryError
from tools.notifier import Severity

logger = logging.getLogger("FoundryChat")


class FoundryChatNotifier:
    """Notifier backed by Foundry ChatMessage creation.

    If the relay is down the message goes to the log instead; a lost chat
    line is never worth failing a token update over.
    """

    def __init__(self, client: FoundryClient, speaker: Optional[Dict[str, Any]] = None):
        self.client = client
        self.speaker = speaker

    async def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        content = message if severity == Severity.INFO else f"<strong>Error:</strong> {message}"
        try:
            await self.client.post_chat_message(content, speaker=self.speaker)
        except FoundryError as e:
            logger.error(f"Could not post to Foundry chat ({e}): {message}")
