"""
Base REST API client.

Shared HTTP concerns for outbound integrations:
- lazily created, reusable httpx.AsyncClient
- bounded timeouts
- error mapping to the APIError hierarchy
- request/response debug logging

Calls are not retried in-band; callers decide what to do with a failure.
"""
import json
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass
from enum import Enum
from datetime import datetime

import httpx

from core.logging_config import get_logger


logger = get_logger(__name__)

# Non-JSON error bodies are cut to this length before becoming the message
ERROR_TEXT_MAX_CHARS = 200


class HTTPMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass
class APIResponse:
    """API response wrapper"""
    status_code: int
    headers: Dict[str, str]
    data: Any
    raw_content: bytes
    elapsed_ms: float
    request_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_error(self) -> bool:
        return not self.is_success

    def json(self) -> Any:
        if self.data is not None:
            return self.data
        return json.loads(self.raw_content)

    def text(self) -> str:
        return self.raw_content.decode('utf-8')


class APIError(Exception):
    """Base API error"""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[APIResponse] = None,
        request_id: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        self.request_id = request_id
        super().__init__(self.message)

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.request_id:
            parts.append(f"Request ID: {self.request_id}")
        return " | ".join(parts)


class APITimeoutError(APIError):
    """Request exceeded the configured timeout; safe for the caller to retry"""
    pass


class RateLimitError(APIError):
    pass


class AuthenticationError(APIError):
    pass


class NotFoundError(APIError):
    pass


class ServerError(APIError):
    pass


ERROR_CLASSES = {
    401: AuthenticationError,
    403: AuthenticationError,
    404: NotFoundError,
    429: RateLimitError,
    500: ServerError,
    502: ServerError,
    503: ServerError,
    504: ServerError,
}


class BaseAPIClient:
    """
    REST API client base class.

    Subclasses wrap provider endpoints on top of `_request`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Union[float, httpx.Timeout] = 15.0,
        headers: Optional[Dict[str, str]] = None,
        verify_ssl: bool = True,
        debug: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API base URL
            timeout: seconds, or a full httpx.Timeout
            headers: default headers sent with every request
            verify_ssl: verify TLS certificates
            debug: log requests and responses
            transport: custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout if isinstance(timeout, httpx.Timeout) else httpx.Timeout(timeout)
        self.verify_ssl = verify_ssl
        self.debug = debug
        self._transport = transport

        self.default_headers = {
            "Accept": "application/json, application/xml, text/xml",
            "User-Agent": "autopay-integration/1.0",
        }
        if headers:
            self.default_headers.update(headers)

        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.lstrip('/')
        return f"{self.base_url}/{endpoint}"

    def _log_request(self, method: str, url: str, **kwargs):
        if self.debug:
            logger.debug("api_request", method=method, url=url, has_body=kwargs.get("json") is not None)

    def _log_response(self, response: APIResponse):
        if self.debug:
            logger.debug(
                "api_response",
                status_code=response.status_code,
                elapsed_ms=response.elapsed_ms,
                request_id=response.request_id,
            )

    def _extract_error_message(self, response: APIResponse) -> Optional[str]:
        """Provider message from the error body, if there is one."""
        if isinstance(response.data, dict):
            message = (
                response.data.get("message")
                or response.data.get("error")
                or response.data.get("detail")
            )
            return str(message) if message else None
        text = response.raw_content.decode("utf-8", errors="replace").strip()
        return text[: ERROR_TEXT_MAX_CHARS] or None

    def _handle_error_response(self, response: APIResponse):
        error_class = ERROR_CLASSES.get(response.status_code, APIError)
        error_message = (
            self._extract_error_message(response)
            or f"API request failed with status {response.status_code}"
        )

        raise error_class(
            message=error_message,
            status_code=response.status_code,
            response=response,
            request_id=response.request_id
        )

    async def _request(
        self,
        method: Union[str, HTTPMethod],
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        """
        Send one HTTP request.

        Raises:
            APITimeoutError: the request timed out
            APIError: transport failure or non-2xx response
        """
        if isinstance(method, HTTPMethod):
            method = method.value

        url = self._build_url(endpoint)

        request_headers = {**self.default_headers}
        if headers:
            request_headers.update(headers)

        self._log_request(method, url, params=params, json=json_data)

        start_time = datetime.now()
        try:
            response = await self.client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            raise APITimeoutError(f"Request timeout after {self.timeout.read}s") from exc
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}") from exc

        elapsed = (datetime.now() - start_time).total_seconds() * 1000

        content_type = response.headers.get("content-type", "")
        response_data = None
        if "application/json" in content_type:
            try:
                response_data = response.json()
            except ValueError:
                response_data = None

        api_response = APIResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            data=response_data,
            raw_content=response.content,
            elapsed_ms=elapsed,
            request_id=response.headers.get("x-request-id")
        )

        self._log_response(api_response)

        if api_response.is_error:
            self._handle_error_response(api_response)

        return api_response

    async def get(self, endpoint: str, **kwargs) -> APIResponse:
        return await self._request(HTTPMethod.GET, endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> APIResponse:
        return await self._request(HTTPMethod.POST, endpoint, **kwargs)
