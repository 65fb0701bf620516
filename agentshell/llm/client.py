"""Gemini model client using httpx.

Talks to the ``generateContent`` REST endpoint and keeps the chat history
for one conversation in a ``ChatSession``. Only the shapes the
orchestrator needs are modelled (text, function calls, function
responses).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from agentshell.api.retry import RetryHandler
from agentshell.config.models import AgentConfig, RetryConfig
from agentshell.errors import ModelClientError
from agentshell.llm.types import Content, ModelResponse, Part
from agentshell.tools.base import ToolDeclaration

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class ChatSessionProtocol(Protocol):
    """What the orchestrator needs from a chat session."""

    async def send(self, parts: Sequence[Part]) -> ModelResponse: ...

    def checkpoint(self) -> int: ...

    def rollback(self, mark: int) -> None: ...


class GeminiClient:
    """Async client for the Gemini ``generateContent`` API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = 120.0,
        temperature: Optional[float] = None,
        retry: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("API key required")
        self.model = model
        self.temperature = temperature
        self._retry = RetryHandler(retry or RetryConfig())
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "x-goog-api-key": api_key,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout=timeout, connect=30.0),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: AgentConfig, **kwargs: Any) -> "GeminiClient":
        return cls(
            api_key=config.get_api_key(),
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout,
            temperature=config.temperature,
            retry=config.retry,
            **kwargs,
        )

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def start_chat(
        self,
        tools: Sequence[ToolDeclaration] = (),
        system_instruction: Optional[str] = None,
    ) -> "ChatSession":
        return ChatSession(self, tools=tools, system_instruction=system_instruction)

    def _build_payload(
        self,
        contents: Sequence[Content],
        tools: Sequence[ToolDeclaration],
        system_instruction: Optional[str],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": [c.to_dict() for c in contents]}
        if tools:
            payload["tools"] = [{"functionDeclarations": [t.to_dict() for t in tools]}]
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if self.temperature is not None:
            payload["generationConfig"] = {"temperature": self.temperature}
        return payload

    @staticmethod
    def _raise_http_error(response: httpx.Response) -> None:
        """Map an error response to ModelClientError and raise."""
        status_code = response.status_code
        try:
            error_msg = response.json().get("error", {}).get("message", response.text)
        except (json.JSONDecodeError, AttributeError):
            error_msg = response.text

        if status_code in (401, 403):
            code = "authentication_error"
        elif status_code == 429:
            code = "rate_limit"
        elif status_code >= 500:
            code = "server_error"
        else:
            code = "api_error"
        raise ModelClientError(f"HTTP {status_code}: {error_msg}", code=code, status_code=status_code)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise ModelClientError(f"Request timed out: {e}", code="timeout") from e
        except httpx.ConnectError as e:
            raise ModelClientError(f"Connection error: {e}", code="connection_error") from e
        except httpx.HTTPError as e:
            raise ModelClientError(f"HTTP error: {e}", code="api_error") from e

        if response.status_code != 200:
            self._raise_http_error(response)

        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ModelClientError(f"Invalid JSON in response: {e}", code="api_error") from e

    async def generate(
        self,
        contents: Sequence[Content],
        tools: Sequence[ToolDeclaration] = (),
        system_instruction: Optional[str] = None,
    ) -> ModelResponse:
        """Send one ``generateContent`` request, retrying transient failures."""
        payload = self._build_payload(contents, tools, system_instruction)
        path = f"/models/{self.model}:generateContent"
        data = await self._retry.execute(self._post, path, payload)
        response = ModelResponse.from_dict(data)
        logger.debug(
            "model %s: %d candidate(s), tokens in=%d out=%d",
            self.model,
            len(response.candidates),
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
        return response


class ChatSession:
    """In-memory chat history for one conversation.

    A message and its reply are appended only after a successful request,
    so a failed send leaves the history untouched.
    """

    def __init__(
        self,
        client: GeminiClient,
        tools: Sequence[ToolDeclaration] = (),
        system_instruction: Optional[str] = None,
    ):
        self.client = client
        self.tools = list(tools)
        self.system_instruction = system_instruction
        self.history: List[Content] = []

    async def send(self, parts: Sequence[Part]) -> ModelResponse:
        message = Content(role="user", parts=list(parts))
        response = await self.client.generate(
            [*self.history, message],
            tools=self.tools,
            system_instruction=self.system_instruction,
        )
        self.history.append(message)
        if response.candidates and response.candidates[0].content is not None:
            reply = response.candidates[0].content
            reply.role = "model"
            self.history.append(reply)
        return response

    def checkpoint(self) -> int:
        """Mark the current end of history."""
        return len(self.history)

    def rollback(self, mark: int) -> None:
        """Drop everything appended after ``mark``."""
        del self.history[mark:]
