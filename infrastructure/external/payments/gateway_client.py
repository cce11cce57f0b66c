"""
HTTP client for the Autopay API.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from core.settings import PaymentTimeouts
from infrastructure.external.api_clients.base import APIResponse, BaseAPIClient
from infrastructure.external.payments import xml_codec

# Autopay answers /payment with an XML document instead of a redirect only
# when this header is present.
BM_HEADER = {"BmHeader": "pay-bm-continue-transaction-url"}


class AutopayGatewayClient(BaseAPIClient):
    """POSTs to `{autopay_url}{path}` with the integration header."""

    def __init__(
        self,
        base_url: str,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False,
    ) -> None:
        t = timeouts or PaymentTimeouts()
        super().__init__(
            base_url=base_url,
            timeout=httpx.Timeout(t.total, connect=t.connect, read=t.read, write=t.write),
            headers=BM_HEADER,
            transport=transport,
            debug=debug,
        )

    async def call(
        self,
        path: str,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        """Return the parsed JSON body, or the raw text for anything else."""
        response = await self.post(path, params=params, json_data=body)
        if response.data is not None:
            return response.data
        return response.text()

    def _extract_error_message(self, response: APIResponse) -> Optional[str]:
        # Autopay reports errors as XML; fall back to the raw text otherwise
        if response.data is None:
            message = xml_codec.parse_error_message(response.raw_content)
            if message:
                return message
        return super()._extract_error_message(response)
