import asyncio
import json
import time
from collections import deque
from typing import Any, Optional, Sequence, Union

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solders.pubkey import Pubkey
from solders.signature import Signature

from .config import get_settings
from .logger import logger


class SolanaClient:
    class _RLProxy:
        def __init__(self, limiter, rpc):
            self._limiter, self._rpc = limiter, rpc

        def __getattr__(self, name):
            attr = getattr(self._rpc, name)

            if not callable(attr):
                return attr

            async def wrapped(*args, **kwargs):
                await self._limiter.wait()
                return await attr(*args, **kwargs)

            return wrapped

    class _AsyncRateLimiter:
        def __init__(self, max_calls: int, per_seconds: float):
            self.max_calls = max_calls
            self.per_seconds = per_seconds
            self.calls = deque()

        async def wait(self):
            now = time.monotonic()
            while len(self.calls) >= self.max_calls:
                elapsed = now - self.calls[0]
                if elapsed < self.per_seconds:
                    await asyncio.sleep(min(self.per_seconds - elapsed, 0.01))
                    now = time.monotonic()
                else:
                    self.calls.popleft()
            self.calls.append(now)

    def __init__(self, rpc_endpoint: Optional[str] = None, max_calls_per_second: Optional[int] = None):
        """Initialize Solana client with RPC endpoint.

        Args:
            rpc_endpoint: URL of the Solana RPC endpoint, `ELOWEN_RPC_URL` by default
            max_calls_per_second: RPC calls allowed per second before waiting
        """
        if rpc_endpoint is None:
            rpc_endpoint = get_settings().rpc_url
        if max_calls_per_second is None:
            max_calls_per_second = get_settings().rpc_max_calls_per_second
        self.rpc_endpoint = rpc_endpoint
        self._client = None
        self._limiter = self._AsyncRateLimiter(max_calls=max_calls_per_second, per_seconds=1.0)

    async def get_client(self) -> AsyncClient:
        """Get or create the AsyncClient instance.

        Returns:
            AsyncClient instance
        """
        if self._client is None:
            raw_client = AsyncClient(self.rpc_endpoint)
            self._client = self._RLProxy(self._limiter, raw_client)

        return self._client

    async def close(self):
        """Close the client connection."""
        if self._client:
            await self._client._rpc.close()
            self._client = None

    async def get_account_data(self, pubkey: Pubkey, commitment: Commitment = Confirmed) -> bytes:
        """Raw data of an account.

        Raises:
            ValueError: If account doesn't exist
        """
        client = await self.get_client()
        response = await client.get_account_info(pubkey, commitment=commitment)
        if not response.value:
            raise ValueError(f"Account {pubkey} not found")
        return bytes(response.value.data)

    async def get_token_account_balance(self, token_account: Pubkey) -> tuple[int, int]:
        """Raw amount and decimals held by a token account.

        Raises:
            ValueError: If the token account doesn't exist
        """
        client = await self.get_client()
        response = await client.get_token_account_balance(token_account)
        if not response.value:
            raise ValueError(f"Token account {token_account} not found")
        return int(response.value.amount), int(response.value.decimals)

    async def get_signatures_for_address(
        self,
        address: Pubkey,
        limit: int = 25,
        before: Optional[Union[str, Signature]] = None,
    ) -> list[Signature]:
        """Latest signatures touching `address`, newest first."""
        if isinstance(before, str):
            before = Signature.from_string(before)
        client = await self.get_client()
        response = await client.get_signatures_for_address(address, before=before, limit=limit)
        return [status.signature for status in response.value]

    async def get_parsed_transaction(self, signature: Union[str, Signature]) -> Optional[dict[str, Any]]:
        """jsonParsed transaction as a plain dict, or None when the node does not know it."""
        if isinstance(signature, str):
            signature = Signature.from_string(signature)
        client = await self.get_client()
        response = await client.get_transaction(
            signature,
            encoding="jsonParsed",
            commitment=Confirmed,
            max_supported_transaction_version=0,
        )
        if response.value is None:
            logger.warning("transaction not found", signature=str(signature))
            return None
        return json.loads(response.value.to_json())

    async def get_parsed_transactions(
        self, signatures: Sequence[Union[str, Signature]]
    ) -> list[Optional[dict[str, Any]]]:
        """Fetches transactions concurrently; the result keeps the order of `signatures`."""
        return list(await asyncio.gather(*(self.get_parsed_transaction(s) for s in signatures)))
