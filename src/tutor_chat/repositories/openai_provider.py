"""OpenAI chat-completions provider.

Talks to ``{base_url}/chat/completions`` over httpx, so any OpenAI-compatible
endpoint works (OpenAI, Azure-style proxies, vLLM, Ollama's ``/v1``).

Key features:
- Blocking and streaming (``stream: true``) completions
- Fixed generation parameters taken from settings
- Every transport, HTTP and decoding failure surfaces as ``UpstreamError``
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from tutor_chat.config import Settings, settings
from tutor_chat.entities import Completion
from tutor_chat.errors import UpstreamError

logger = logging.getLogger(__name__)


def _extract_content(data: dict[str, Any]) -> str:
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict) and message.get("content") is not None:
            return str(message["content"])
    return ""


def _extract_delta(event: dict[str, Any]) -> str:
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta")
    if isinstance(delta, dict) and isinstance(delta.get("content"), str):
        return delta["content"]
    return ""


def _transport_message(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "Request timed out"
    return str(exc) or exc.__class__.__name__


class OpenAIChatProvider:
    """OpenAI-based implementation of the ChatProvider protocol.

    This class satisfies the ChatProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OpenAIChatProvider.create()
        completion = await provider.complete(
            [{"role": "user", "content": "안녕하세요"}]
        )

        async for chunk in provider.stream(messages):
            print(chunk, end="")
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        generation: dict[str, float | int] | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Bearer key. Defaults to settings.openai_api_key.
            model_name: Model identifier. Defaults to settings.openai_model.
            base_url: API root ending in ``/v1``. Defaults to settings.openai_base_url.
            generation: Sampling parameters sent with every request
                (max_tokens, temperature, top_p, frequency_penalty, presence_penalty).
                Defaults to the values in settings.
            timeout: Connect/read timeout, and the whole-request limit for
                ``complete``, in seconds. Defaults to settings.openai_timeout.
            client: Pre-built AsyncClient (tests inject one with a mock transport).
        """
        self._api_key = api_key or settings.openai_api_key
        self._model_name = model_name or settings.openai_model
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._generation = generation if generation is not None else self.generation_from(settings)
        self._timeout = timeout or settings.openai_timeout
        self._client = client

    @classmethod
    def create(cls, config: Settings | None = None) -> "OpenAIChatProvider":
        """Factory method to create OpenAIChatProvider from settings.

        Args:
            config: Settings to read. If None, uses the global settings.

        Returns:
            Configured OpenAIChatProvider
        """
        config = config or settings
        return cls(
            api_key=config.openai_api_key,
            model_name=config.openai_model,
            base_url=config.openai_base_url,
            generation=cls.generation_from(config),
            timeout=config.openai_timeout,
        )

    @staticmethod
    def generation_from(config: Settings) -> dict[str, float | int]:
        return {
            "max_tokens": config.openai_max_tokens,
            "temperature": config.openai_temperature,
            "top_p": config.openai_top_p,
            "frequency_penalty": config.openai_frequency_penalty,
            "presence_penalty": config.openai_presence_penalty,
        }

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def _url(self) -> str:
        return f"{self._base_url}/chat/completions"

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }

    def _payload(self, messages: list[dict[str, str]], stream: bool) -> dict[str, Any]:
        return {
            "model": self._model_name,
            "messages": messages,
            **self._generation,
            "stream": stream,
        }

    @staticmethod
    def _status_error(response: httpx.Response) -> UpstreamError:
        message = f"OpenAI API returned HTTP {response.status_code}"
        code: str | None = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            message = error.get("message") or message
            code = error.get("code") or error.get("type")
        return UpstreamError(message, status_code=response.status_code, code=code)

    async def complete(self, messages: list[dict[str, str]]) -> Completion:
        """Generate a whole reply.

        Args:
            messages: Provider-shaped chat messages

        Returns:
            Completion with the reply text and token usage

        Raises:
            UpstreamError: If the request fails for any reason
        """
        try:
            # The client timeout applies per connect/read; this caps the whole request.
            response = await asyncio.wait_for(
                self.client.post(
                    self._url,
                    json=self._payload(messages, stream=False),
                    headers=self._headers,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamError("Request timed out", code="timeout") from e
        except httpx.HTTPError as e:
            raise UpstreamError(_transport_message(e), code=e.__class__.__name__) from e

        if response.is_error:
            raise self._status_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("OpenAI API returned an invalid JSON body") from e

        if not isinstance(data, dict):
            raise UpstreamError("OpenAI API returned an unexpected body")

        usage = data.get("usage")
        return Completion(
            content=_extract_content(data),
            usage=usage if isinstance(usage, dict) else None,
        )

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Generate a reply incrementally.

        Args:
            messages: Provider-shaped chat messages

        Yields:
            Non-empty content deltas in arrival order

        Raises:
            UpstreamError: If the request or the stream fails
        """
        try:
            async with self.client.stream(
                "POST",
                self._url,
                json=self._payload(messages, stream=True),
                headers=self._headers,
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise self._status_error(response)

                async for raw_line in response.aiter_lines():
                    line = raw_line.strip()
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug("Skipping undecodable stream line: %r", data[:80])
                        continue
                    if not isinstance(event, dict):
                        continue
                    if isinstance(event.get("error"), dict):
                        error = event["error"]
                        raise UpstreamError(
                            error.get("message") or "OpenAI stream reported an error",
                            code=error.get("code") or error.get("type"),
                        )
                    content = _extract_delta(event)
                    if content:
                        yield content
        except httpx.HTTPError as e:
            raise UpstreamError(_transport_message(e), code=e.__class__.__name__) from e

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
