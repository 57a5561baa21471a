"""Node JSON-RPC access used to seed contract records."""

from __future__ import annotations

import asyncio
import logging

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from explorer.core.addresses import canonical_address
from explorer.store.contracts import canonical_bytecode

logger = logging.getLogger(__name__)


class ChainClientError(Exception):
    """The node could not be reached or rejected the request."""


class ChainClient:
    """Thin async wrapper over the node's JSON-RPC interface."""

    def __init__(self, rpc_url: str, w3: AsyncWeb3 | None = None) -> None:
        self.rpc_url = rpc_url
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))

    async def get_code(self, address: str, block: str | int = "latest") -> str:
        """Runtime bytecode at ``address`` as lowercase hex without ``0x``.

        Raises:
            ValueError: ``address`` is malformed.
            ChainClientError: the RPC call failed.
        """
        address = canonical_address(address)
        try:
            code = await self.w3.eth.get_code(address, block)
        except (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.error("eth_getCode failed: %s", exc, extra={"address": address})
            raise ChainClientError(f"node request to {self.rpc_url} failed: {exc}") from exc

        logger.debug("Fetched %d bytes of code", len(code), extra={"address": address})
        return canonical_bytecode(bytes(code).hex())
