from __future__ import annotations

from typing import Any

import httpx

from approvalbridge.contracts.services.channel import Decision, Timeout
from approvalbridge.contracts.errors.errors import DuplicateKey


class ApprovalClient:
    """
    Convenience client for talking to a running approval bridge from Python.

    - send_message():      notify the operator, get back the message id
    - wait_for_decision(): block on GET /approval/{message_id}
    - request_approval():  both, in one call

    Pass `http_client` to reuse a connection pool (or an ASGITransport in tests).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 100.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._http is not None:
            return await self._http.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)

    async def send_message(
        self,
        text: str,
        *,
        actions: list[str] | None = None,
        keyboard: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> str:
        """
        Send a notification via POST /api/send-message and return its message id.
        """
        payload = {"text": text, "actions": actions, "keyboard": keyboard, "parse_mode": parse_mode}
        resp = await self._request(
            "POST",
            "/api/send-message",
            json={k: v for k, v in payload.items() if v is not None},
        )
        resp.raise_for_status()
        return resp.json()["message_id"]

    async def wait_for_decision(self, message_id: str, *, timeout_s: float | None = None) -> Decision | Timeout:
        """
        Long-running GET /approval/{message_id}.

        Returns a Decision (200) or Timeout (408); raises DuplicateKey on 409.
        """
        params = {"timeout_s": timeout_s} if timeout_s is not None else None
        resp = await self._request(
            "GET",
            f"/approval/{message_id}",
            params=params,
            timeout=(timeout_s or self.timeout) + 10.0,
        )
        if resp.status_code == 408:
            return Timeout(key=message_id, waited_s=timeout_s or 0.0)
        if resp.status_code == 409:
            raise DuplicateKey(message_id)
        resp.raise_for_status()
        data = resp.json()
        return Decision(key=message_id, action=data["action"], actor=data.get("actor"))

    async def request_approval(
        self,
        text: str,
        actions: list[str],
        *,
        timeout_s: float | None = None,
    ) -> Decision | Timeout:
        message_id = await self.send_message(text, actions=actions)
        return await self.wait_for_decision(message_id, timeout_s=timeout_s)
