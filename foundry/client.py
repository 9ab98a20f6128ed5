"""
Foundry VTT Client — REST API Relay (Async)

Reads and writes token vision/light data and posts chat messages in a
Foundry VTT world through the REST API relay server.

Architecture:
  Token Vision bot  --(REST/HTTP)-->  Relay Server  --(WebSocket)-->  Foundry VTT + Module

Requires:
  - FOUNDRY_API_KEY: Your relay API key
  - FOUNDRY_RELAY_URL: Relay server URL (default: public relay)
  - FOUNDRY_CLIENT_ID: Your world's client ID (auto-discovered if not set)

All public methods are async. Callers must `await` every call.
"""

import os
import random
import asyncio
import logging
from typing import Optional, Dict, Any, List

import aiohttp

from foundry.errors import (
    FoundryError,
    FoundryConnectionError,
    FoundryTimeoutError,
    FoundryRateLimitError,
    FoundryOfflineError,
    FoundryNotFoundError,
    FoundryAuthError,
    RETRYABLE_ERRORS,
)
from tools.rate_limiter import RateLimiter, foundry_limiter

logger = logging.getLogger('FoundryClient')

DEFAULT_RELAY_URL = 'https://foundryvtt-rest-api-relay.fly.dev'


class FoundryClient:
    """Async client for the Foundry VTT REST API relay.

    Usage:
        client = FoundryClient()
        await client.connect()              # creates aiohttp session, discovers clientId
        tokens = await client.get_selected_tokens()
        await client.update_entity(tokens[0]['uuid'], {'dimSight': 60})
        await client.close()                # cleans up the TCP session
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        relay_url: Optional[str] = None,
        client_id: Optional[str] = None,
        limiter: Optional[RateLimiter] = None,
    ):
        self.api_key = api_key or os.getenv('FOUNDRY_API_KEY')
        self.relay_url = (relay_url or os.getenv('FOUNDRY_RELAY_URL', DEFAULT_RELAY_URL)).rstrip('/')
        self.client_id = client_id or os.getenv('FOUNDRY_CLIENT_ID')
        self.limiter = limiter or foundry_limiter
        self._connected = False
        self._session: Optional[aiohttp.ClientSession] = None

        # Retry settings
        self.max_retries = 3
        self.base_delay = 1.0  # seconds; doubles each retry (1, 2, 4)

        if not self.api_key:
            logger.warning("FOUNDRY_API_KEY not set — Foundry integration disabled.")

    # ------------------------------------------------------------------
    # Internal HTTP layer
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'x-api-key': self.api_key or '',
        }

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    @staticmethod
    async def _raise_for_status(resp: aiohttp.ClientResponse) -> None:
        """Map HTTP status codes to specific Foundry error types."""
        if resp.status < 400:
            return
        body = await resp.text()
        if resp.status in (401, 403):
            raise FoundryAuthError(f"Auth failed ({resp.status}): {body}")
        if resp.status == 404:
            raise FoundryNotFoundError(f"Not found ({resp.status}): {body}")
        if resp.status == 429:
            raise FoundryRateLimitError(f"Rate limited ({resp.status}): {body}")
        if resp.status >= 500:
            raise FoundryConnectionError(f"Server error ({resp.status}): {body}")
        raise FoundryError(f"HTTP {resp.status}: {body}")

    async def _raw_request(
        self,
        method: str,
        path: str,
        body: Optional[Dict] = None,
        params: Optional[Dict] = None,
        timeout: int = 15,
        inject_client_id: bool = True,
    ) -> Any:
        """Execute a single HTTP request (no retry).

        Returns whatever JSON the relay sends — usually a dict, but
        /clients returns a list.
        """
        if method not in ('GET', 'POST', 'PUT', 'DELETE'):
            raise ValueError(f"Unsupported HTTP method: {method}")

        session = self._session
        if session is None or session.closed:
            raise FoundryConnectionError("No active aiohttp session — call connect() first.")

        params = dict(params or {})
        if inject_client_id and self.client_id and 'clientId' not in params:
            params['clientId'] = self.client_id

        kwargs: Dict[str, Any] = {
            'headers': self._headers(),
            'params': params,
            'timeout': aiohttp.ClientTimeout(total=timeout),
        }
        if method in ('POST', 'PUT'):
            kwargs['json'] = body or {}

        try:
            async with session.request(method, f"{self.relay_url}{path}", **kwargs) as resp:
                await self._raise_for_status(resp)
                return await resp.json()
        except aiohttp.ClientError as e:
            raise FoundryConnectionError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise FoundryTimeoutError(f"Request timed out after {timeout}s: {path}") from e

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict] = None,
        params: Optional[Dict] = None,
        timeout: int = 15,
    ) -> Any:
        """HTTP request with rate limiting, auto-reconnect, and retry."""
        await self._ensure_connected()
        await self.limiter.acquire()

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                return await self._raw_request(method, path, body=body, params=params, timeout=timeout)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                    logger.warning(
                        f"Foundry request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay:.1f}s: {e}"
                    )
                    await asyncio.sleep(delay)
            # NotFound and Auth propagate immediately

        raise last_error  # type: ignore[misc]

    async def _ensure_connected(self) -> None:
        """Reconnect transparently if the connection dropped."""
        if self._connected and self._session and not self._session.closed:
            return
        logger.info("Foundry connection lost, attempting reconnect...")
        if not await self.connect():
            raise FoundryOfflineError("Could not reconnect to Foundry relay.")

    # ------------------------------------------------------------------
    # Connection & Discovery
    # ------------------------------------------------------------------

    async def get_clients(self) -> Any:
        """
        List all connected Foundry worlds.
        Does NOT require clientId. Bypasses auto-reconnect to avoid loops.
        """
        self._ensure_session()
        await self.limiter.acquire()
        return await self._raw_request('GET', '/clients', timeout=10, inject_client_id=False)

    async def connect(self) -> bool:
        """
        Validate the connection and auto-discover clientId if not set.
        Returns True if a Foundry world is reachable.
        """
        if not self.api_key:
            logger.error("Cannot connect: FOUNDRY_API_KEY not set.")
            return False

        try:
            clients = await self.get_clients()
        except FoundryError as e:
            logger.error(f"Failed to connect to Foundry relay: {e}")
            return False

        if not clients:
            logger.warning("No Foundry worlds connected to the relay.")
            return False

        if not self.client_id:
            self.client_id = _discover_client_id(clients)
            if not self.client_id:
                logger.warning("Could not auto-discover clientId from response.")
                logger.debug(f"Clients response: {clients}")
                return False
            logger.info(f"Auto-discovered Foundry clientId: {self.client_id}")

        self._connected = True
        logger.info(f"Connected to Foundry relay at {self.relay_url} (client: {self.client_id})")
        return True

    async def close(self) -> None:
        """Shut down the aiohttp session cleanly."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._connected = False
        logger.info("Foundry client closed.")

    @property
    def is_connected(self) -> bool:
        return self._connected and bool(self.api_key) and bool(self.client_id)

    async def health_check(self) -> Dict[str, Any]:
        """Check relay + Foundry connectivity. Returns a status dict."""
        result: Dict[str, Any] = {
            'relay_reachable': False,
            'foundry_connected': False,
            'client_id': self.client_id,
        }
        try:
            self._ensure_session()
            clients = await self._raw_request('GET', '/clients', timeout=10, inject_client_id=False)
            result['relay_reachable'] = True
            result['foundry_connected'] = bool(clients)
            result['connected_worlds'] = len(clients) if isinstance(clients, list) else 0
        except FoundryConnectionError as e:
            logger.warning(f"Foundry relay unreachable: {e}")
        except FoundryError as e:
            result['error'] = str(e)
        return result

    # ------------------------------------------------------------------
    # Entity Operations
    # ------------------------------------------------------------------

    async def get_entity(self, uuid: str) -> Dict[str, Any]:
        """Get an entity by UUID (Token, Scene, Actor, ...)."""
        return await self._request('GET', '/get', params={'uuid': uuid})

    async def get_selected(self, get_actor: bool = False) -> Dict[str, Any]:
        """Get the currently selected token(s) (or their actors)."""
        params: Dict[str, Any] = {'selected': 'true'}
        if get_actor:
            params['actor'] = 'true'
        return await self._request('GET', '/get', params=params)

    async def create_entity(self, entity_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new entity (ChatMessage, JournalEntry, ...)."""
        return await self._request('POST', '/create', body={'entityType': entity_type, 'data': data})

    async def update_entity(self, uuid: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update an existing entity by UUID. Only the keys in `data` change."""
        return await self._request('PUT', '/update', body={'data': data}, params={'uuid': uuid})

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def get_selected_tokens(self) -> List[Dict[str, Any]]:
        """Tokens the GM currently has selected on the canvas.

        Each entry is the token's data dict with its 'uuid' filled in.
        An empty list means nothing is selected.
        """
        response = await self.get_selected()
        payload = response.get('data') if isinstance(response, dict) else response
        tokens = []
        for entry in _as_list(payload):
            if not isinstance(entry, dict):
                continue
            token = dict(entry.get('data', entry))
            token.setdefault('uuid', entry.get('uuid', ''))
            tokens.append(token)
        return tokens

    async def get_token_data(self, uuid: str) -> Dict[str, Any]:
        """Current data of a single token."""
        response = await self.get_entity(uuid)
        data = response.get('data', {})
        if isinstance(data, list):
            data = data[0] if data else {}
        return data

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def post_chat_message(self, content: str,
                                speaker: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Post a message to the Foundry chat log."""
        data: Dict[str, Any] = {'content': content}
        if speaker:
            data['speaker'] = speaker
        return await self.create_entity('ChatMessage', data)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _as_list(data: Any) -> List[Any]:
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


def _discover_client_id(clients: Any) -> Optional[str]:
    """Pull the first clientId out of a /clients response (list or dict of lists)."""
    candidates: List[Any] = []
    if isinstance(clients, list):
        candidates = clients
    elif isinstance(clients, dict):
        for val in clients.values():
            if isinstance(val, list) and val:
                candidates = val
                break
    if candidates and isinstance(candidates[0], dict):
        return candidates[0].get('clientId') or candidates[0].get('id')
    return None
