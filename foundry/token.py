"""
FoundryToken — a Foundry token as a TokenSubject.

Reads go to /get, writes to /update. Every read fetches fresh data so a
snapshot reflects the token as it is right now, not as it was selected.
"""

import logging
from typing import Any, Dict, List, Optional

from foundry.client import FoundryClient
from models.token_vision import FieldSet

logger = logging.getLogger("FoundryToken")


class FoundryToken:
    """Vision/light view of one token on the canvas."""

    def __init__(self, client: FoundryClient, uuid: str, name: Optional[str] = None):
        self.client = client
        self.uuid = uuid
        self.name = name or uuid

    def __repr__(self) -> str:
        return f"FoundryToken({self.name!r}, uuid={self.uuid!r})"

    async def get_fields(self) -> FieldSet:
        data = await self.client.get_token_data(self.uuid)
        return FieldSet.model_validate(data)

    async def update_fields(self, fields: FieldSet) -> None:
        payload = fields.to_update()
        logger.info(f"Updating {self.name}: {payload}")
        await self.client.update_entity(self.uuid, payload)

    @classmethod
    def from_data(cls, client: FoundryClient, data: Dict[str, Any]) -> "FoundryToken":
        return cls(client, data.get("uuid", ""), data.get("name"))

    @classmethod
    async def selected(cls, client: FoundryClient) -> List["FoundryToken"]:
        """Tokens currently selected in Foundry. Entries without a UUID are skipped."""
        tokens = []
        for data in await client.get_selected_tokens():
            if not data.get("uuid"):
                logger.warning(f"Selected token without a UUID skipped: {data.get('name', '?')}")
                continue
            tokens.append(cls.from_data(client, data))
        return tokens
