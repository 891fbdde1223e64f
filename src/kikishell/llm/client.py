"""HTTP client for OpenAI-compatible /v1/chat/completions endpoints."""

import json
import logging
from typing import Callable, Optional

import httpx

from kikishell.agent.cancel import RequestScope
from kikishell.errors import CompletionError
from kikishell.llm.types import ChatMessage, ChatRequest

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0


class CompletionClient:
    """Blocking client for a llama.cpp-style chat completion server.

    One ``complete`` call is one HTTP round trip. When a RequestScope is
    passed, the call is bounded by the scope's remaining time and stops
    reading a stream as soon as the scope is cancelled.
    """

    def __init__(self, endpoint: str, transport: httpx.BaseTransport | None = None):
        self.endpoint = endpoint
        self._http = httpx.Client(transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "CompletionClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 0,
        stream: bool = False,
        on_text: Optional[Callable[[str], None]] = None,
        scope: RequestScope | None = None,
        timeout: float | None = None,
    ) -> str:
        """Send one chat request and return the reply text.

        Args:
            messages: Ordered (role, content) messages
            model: Model name sent to the server
            temperature: Sampling temperature (0 leaves the server default)
            max_tokens: Reply length cap (0 leaves the server default)
            stream: Read the reply as server-sent events
            on_text: Called with each streamed piece of text
            scope: Cancellation scope bounding this call
            timeout: Seconds to wait when no scope is given

        Raises:
            CompletionError: transport failure, HTTP error or unusable reply
            RequestCancelled: the scope was cancelled or expired
        """
        if scope is not None:
            scope.check()
            timeout = scope.remaining()

        request = ChatRequest(
            model=model,
            messages=list(messages),
            temperature=temperature,
            max_tokens=max_tokens,
            stream=stream,
        )
        http_timeout = httpx.Timeout(
            timeout, connect=CONNECT_TIMEOUT if timeout is None else min(CONNECT_TIMEOUT, timeout)
        )
        logger.debug(
            f"POST {self.endpoint} stream={stream} messages={len(messages)} timeout={timeout}"
        )

        try:
            if stream:
                return self._stream(request, http_timeout, on_text, scope)
            return self._single(request, http_timeout)
        except httpx.TimeoutException as e:
            raise CompletionError(f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise CompletionError(f"request failed: {e}") from e

    def _single(self, request: ChatRequest, timeout: httpx.Timeout) -> str:
        response = self._http.post(self.endpoint, json=request.to_payload(), timeout=timeout)
        if response.status_code >= 400:
            raise _error_from_response(response)

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise CompletionError(f"could not parse response: {e}") from e

        choices = body.get("choices") or []
        if not choices:
            raise CompletionError("response has no choices")
        choice = choices[0]
        content = ((choice.get("message") or {}).get("content") or "").strip()
        if not content:
            content = (choice.get("text") or "").strip()
        return content

    def _stream(
        self,
        request: ChatRequest,
        timeout: httpx.Timeout,
        on_text: Optional[Callable[[str], None]],
        scope: RequestScope | None,
    ) -> str:
        captured: list[str] = []
        with self._http.stream(
            "POST", self.endpoint, json=request.to_payload(), timeout=timeout
        ) as response:
            if response.status_code >= 400:
                response.read()
                raise _error_from_response(response)

            for line in response.iter_lines():
                if scope is not None:
                    scope.check()
                line = line.strip()
                if not line.startswith("data:"):
                    continue
                data = line[len("data:") :].strip()
                if not data:
                    continue
                if data == "[DONE]":
                    if on_text is not None:
                        on_text("\n")
                    break

                try:
                    event = json.loads(data)
                except json.JSONDecodeError:
                    continue
                text = _delta_text(event)
                if not text:
                    continue
                if on_text is not None:
                    on_text(text)
                captured.append(text)

        return "".join(captured)


def _delta_text(event: dict) -> str:
    choices = event.get("choices") or []
    if not choices:
        return ""
    choice = choices[0]
    text = (choice.get("delta") or {}).get("content") or ""
    if not text:
        text = (choice.get("message") or {}).get("content") or ""
    return text


def _error_from_response(response: httpx.Response) -> CompletionError:
    """Turn an HTTP error response into a CompletionError.

    OpenAI-style bodies ``{"error": {"message": ...}}`` keep just the
    message, so a llama.cpp context overflow stays parseable.
    """
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return CompletionError(f"API Error: {error['message']}")
    return CompletionError(f"HTTP {response.status_code}: {response.text}")
