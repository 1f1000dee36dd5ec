"""
HTTP client for streaming chat endpoints.

Posts a prompt as plain text and decodes the event-stream reply with
StreamDriver, delivering tokens to a callback as they arrive.
"""

from __future__ import annotations

import uuid

import httpx

from .config import Configuration
from .exceptions import ChatStreamError, StreamRequestError
from .logging_utils import StreamErrorHandler, configure_logging, operation_context
from .streaming.driver import StreamDriver, TokenCallback


class ChatStreamClient:
    """
    Streaming chat client over httpx.

    Each call to ``stream_chat`` is an independent stream session; the client
    may run several concurrently.
    """

    def __init__(
        self,
        config: Configuration | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or Configuration()
        streaming_config = self.config.get_streaming_config()
        self.client_config = self.config.get_client_config()
        configure_logging(self.config.get_logging_config().get("level", "INFO"))

        self.driver = StreamDriver(
            strict_headers=streaming_config["strict_headers"],
            encoding=streaming_config["encoding"],
        )
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.client_config["base_url"],
            timeout=httpx.Timeout(
                connect=self.client_config["connect_timeout"],
                read=self.client_config["read_timeout"],
                write=self.client_config["write_timeout"],
                pool=self.client_config["pool_timeout"],
            ),
        )

    def build_headers(self) -> dict[str, str]:
        """Request headers for an event-stream chat call."""
        headers = {
            "Content-Type": "text/plain",
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
        }
        if token := self.config.auth_token:
            headers["Authorization"] = f"{self.client_config['token_type']} {token}"
        return headers

    def endpoint_url(self, endpoint: str) -> str:
        prefix = self.client_config["endpoint_prefix"].rstrip("/")
        return f"{prefix}/{endpoint.lstrip('/')}"

    async def stream_chat(
        self,
        endpoint: str,
        prompt: str,
        on_token: TokenCallback | None = None,
    ) -> str:
        """
        Send a prompt and stream the reply.

        Args:
            endpoint: Chat endpoint name, appended to the configured prefix
            prompt: Plain-text prompt
            on_token: Called with (delta, cumulative) for every token

        Returns:
            The complete response text

        Raises:
            ChatStreamError: On any hard failure, with request context attached
        """
        request_id = uuid.uuid4().hex
        context = {"request_id": request_id, "endpoint": endpoint}

        async with operation_context("stream_chat", context=context):
            try:
                request = self.http_client.build_request(
                    "POST",
                    self.endpoint_url(endpoint),
                    content=prompt.encode("utf-8"),
                    headers=self.build_headers(),
                )
                response = await self.http_client.send(request, stream=True)

                if not response.is_success:
                    await self._raise_for_status(response, request_id, endpoint)

                return await self.driver.run(response, on_token, request_id=request_id)

            except ChatStreamError as e:
                raise StreamErrorHandler.wrap_error(
                    e, "stream_chat", request_id=request_id, endpoint=endpoint
                )
            except httpx.HTTPError as e:
                raise StreamErrorHandler.wrap_error(
                    e, "stream_chat", request_id=request_id, endpoint=endpoint
                ) from e

    async def _raise_for_status(
        self, response: httpx.Response, request_id: str, endpoint: str
    ) -> None:
        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            body = ""
        finally:
            await response.aclose()

        raise StreamRequestError(
            body or f"API call failed with status {response.status_code}",
            request_id=request_id,
            endpoint=endpoint,
            status_code=response.status_code,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> ChatStreamClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
