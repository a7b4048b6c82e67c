"""
Billing lookup proxy client.

Forwards a policy/NIC lookup to the third-party billing portal and returns the
upstream body verbatim; the frontend parses it.
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp


class BillingLookupError(RuntimeError):
    pass


class BillingLookupClient:
    def __init__(self, lookup_url: str, *, timeout_seconds: float = 15.0, user_agent: str = "Mozilla/5.0"):
        self.lookup_url = lookup_url
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._session: aiohttp.ClientSession | None = None
        self.logger = logging.getLogger("approvalbridge.plugins.billing.lookup")

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def lookup(self, nic: str) -> str:
        session = await self._get_session()
        headers = {"User-Agent": self.user_agent, "Accept": "*/*"}
        try:
            async with session.get(self.lookup_url, params={"cd_poliza": nic}, headers=headers) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    self.logger.debug("GET %s -> HTTP %s. Body: %r", self.lookup_url, resp.status, body[:300])
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BillingLookupError(f"Billing lookup failed for {nic!r}: {e}") from e

    async def aclose(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
