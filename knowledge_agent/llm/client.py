"""LLM client interface and the OpenAI-compatible implementation."""

import inspect
import json
import math
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

import httpx

from knowledge_agent.config import LLMSettings, get_settings
from knowledge_agent.exceptions import ErrorCode, LLMError
from knowledge_agent.llm.models import CompletionOptions, GenerationResult, Message, Role
from knowledge_agent.logging_config import get_logger
from knowledge_agent.observability.metrics import track_llm_fallback, track_llm_request

logger = get_logger(__name__)

ChunkCallback = Callable[[str], Awaitable[None] | None]


def estimate_tokens(messages: Sequence[Message]) -> int:
    """Rough token estimate: one token per four characters."""
    total_chars = sum(len(message.content) for message in messages)
    return math.ceil(total_chars * 0.25)


class LLMClient(ABC):
    """Abstract base class for LLM clients.

    Defines the interface for generating text with LLMs.
    """

    @abstractmethod
    async def generate(
        self,
        messages: Sequence[Message],
        options: CompletionOptions | None = None,
    ) -> GenerationResult:
        """Generate text from messages.

        Args:
            messages: Conversation messages.
            options: Per-call parameter overrides.

        Returns:
            GenerationResult with generated text.

        Raises:
            LLMError: If generation fails.
        """
        ...

    @abstractmethod
    def stream(
        self,
        messages: Sequence[Message],
        options: CompletionOptions | None = None,
    ) -> AsyncIterator[str]:
        """Yield generated text fragments as they arrive.

        Raises:
            LLMError: If the stream cannot be opened or breaks mid-way.
        """
        ...

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        options: CompletionOptions | None = None,
    ) -> GenerationResult:
        """Generate text from a simple prompt.

        Args:
            prompt: User prompt.
            system_prompt: Optional system prompt.
            options: Per-call parameter overrides.

        Returns:
            GenerationResult with generated text.
        """
        messages: list[Message] = []

        if system_prompt:
            messages.append(Message(role=Role.SYSTEM, content=system_prompt))

        messages.append(Message(role=Role.USER, content=prompt))

        return await self.generate(messages, options)

    async def stream_generate(
        self,
        messages: Sequence[Message],
        on_chunk: ChunkCallback,
        options: CompletionOptions | None = None,
    ) -> str:
        """Invoke ``on_chunk`` for every fragment, in arrival order.

        Args:
            messages: Conversation messages.
            on_chunk: Sync or async callback receiving each text fragment.
            options: Per-call parameter overrides.

        Returns:
            The full generated text once the stream ends.
        """
        fragments: list[str] = []
        async for fragment in self.stream(messages, options):
            fragments.append(fragment)
            outcome = on_chunk(fragment)
            if inspect.isawaitable(outcome):
                await outcome
        return "".join(fragments)

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the primary model name."""
        ...


class OpenAICompatibleClient(LLMClient):
    """LLM client for OpenAI-compatible chat completion APIs.

    Works with Groq, OpenAI, vLLM, Ollama (``/v1``) and any endpoint
    speaking the same protocol.

    A failed completion is retried once on the configured fallback model.
    The attempt plan is computed up front, so a request makes at most two
    calls.
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            settings: LLM configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def fallback_model_name(self) -> str:
        """Get the fallback model name."""
        return self._settings.fallback_model

    @property
    def _url(self) -> str:
        return f"{self._settings.base_url}/chat/completions"

    def attempt_plan(self, options: CompletionOptions) -> list[str]:
        """Models to try, in order.

        The fallback model is only added when fallback is allowed and the
        requested model is not already the fallback.
        """
        requested = options.model or self._settings.model
        fallback = self._settings.fallback_model
        if options.allow_fallback and requested != fallback:
            return [requested, fallback]
        return [requested]

    async def generate(
        self,
        messages: Sequence[Message],
        options: CompletionOptions | None = None,
    ) -> GenerationResult:
        """Generate text, falling back to the secondary model once on failure."""
        options = options or CompletionOptions()
        plan = self.attempt_plan(options)

        errors: list[LLMError] = []
        for model in plan:
            if errors:
                logger.warning(
                    f"Falling back to model: {model}",
                    extra={"primary_model": plan[0], "error": errors[-1].message},
                )
                track_llm_fallback(primary_model=plan[0], fallback_model=model)
            try:
                return await self._complete(messages, model, options)
            except LLMError as e:
                errors.append(e)

        if len(errors) == 1:
            raise errors[0]

        primary_error, fallback_error = errors
        raise LLMError(
            f"Completion failed on primary and fallback models: {fallback_error.message}",
            code=ErrorCode.LLM_FALLBACK_EXHAUSTED,
            details={
                "models": plan,
                "primary_error": primary_error.message,
                "fallback_error": fallback_error.message,
            },
        ) from fallback_error

    async def _complete(
        self,
        messages: Sequence[Message],
        model: str,
        options: CompletionOptions,
    ) -> GenerationResult:
        """Issue one non-streaming completion request against ``model``."""
        client = await self._get_client()
        payload = self._build_payload(messages, model, options, stream=False)

        start_time = time.perf_counter()
        try:
            response = await client.post(self._url, json=payload, headers=self._headers())
            response.raise_for_status()
            result = self._parse_completion(response, model)
        except LLMError:
            track_llm_request(model, time.perf_counter() - start_time, 0, 0, success=False)
            raise
        except httpx.HTTPError as e:
            track_llm_request(model, time.perf_counter() - start_time, 0, 0, success=False)
            raise self._wrap_http_error(e, model) from e

        track_llm_request(
            model,
            time.perf_counter() - start_time,
            result.prompt_tokens,
            result.completion_tokens,
        )
        return result

    async def stream(
        self,
        messages: Sequence[Message],
        options: CompletionOptions | None = None,
    ) -> AsyncIterator[str]:
        """Stream completion fragments from the primary model.

        Streams never fall back: a failure aborts the stream.
        """
        options = options or CompletionOptions()
        model = options.model or self._settings.model
        client = await self._get_client()
        payload = self._build_payload(messages, model, options, stream=True)

        try:
            async with client.stream(
                "POST", self._url, json=payload, headers=self._headers()
            ) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    fragment = self._parse_stream_line(line)
                    if fragment is None:
                        break
                    if fragment:
                        yield fragment
        except httpx.HTTPError as e:
            logger.error(f"LLM stream failed: {e}", extra={"model": model})
            raise self._wrap_http_error(e, model, stream=True) from e

    def _build_payload(
        self,
        messages: Sequence[Message],
        model: str,
        options: CompletionOptions,
        stream: bool,
    ) -> dict[str, Any]:
        settings = self._settings
        return {
            "model": model,
            "messages": [
                {"role": msg.role.value, "content": msg.content} for msg in messages
            ],
            "temperature": _pick(options.temperature, settings.temperature),
            "max_tokens": _pick(options.max_tokens, settings.max_tokens),
            "top_p": _pick(options.top_p, settings.top_p),
            "frequency_penalty": _pick(options.frequency_penalty, settings.frequency_penalty),
            "presence_penalty": _pick(options.presence_penalty, settings.presence_penalty),
            "stream": stream,
        }

    def _headers(self) -> dict[str, str]:
        headers = {}
        api_key = self._settings.api_key.get_secret_value()
        if api_key and api_key != "not-required":
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _parse_completion(self, response: httpx.Response, model: str) -> GenerationResult:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
            if content is None:
                raise ValueError("message content is null")
            usage = data.get("usage") or {}

            return GenerationResult(
                content=content,
                model=model,
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )

        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Invalid response from LLM: {e}", extra={"model": model})
            raise LLMError(
                f"Invalid response from LLM: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"model": model, "error": str(e)},
            ) from e

    def _parse_stream_line(self, line: str) -> str | None:
        """Extract the delta text from one SSE line.

        Returns ``None`` at the ``[DONE]`` sentinel and ``""`` for lines
        without content.
        """
        if not line.startswith("data:"):
            return ""
        data = line[len("data:"):].strip()
        if data == "[DONE]":
            return None
        try:
            chunk = json.loads(data)
            choices = chunk.get("choices") or [{}]
            return (choices[0].get("delta") or {}).get("content") or ""
        except (ValueError, AttributeError) as e:
            raise LLMError(
                f"Invalid stream chunk from LLM: {e}",
                code=ErrorCode.LLM_STREAM_ERROR,
                details={"chunk": data[:200]},
            ) from e

    def _wrap_http_error(
        self,
        error: httpx.HTTPError,
        model: str,
        stream: bool = False,
    ) -> LLMError:
        """Translate an httpx failure into an LLMError with the matching code."""
        if isinstance(error, httpx.TimeoutException):
            logger.error(f"LLM request timed out: {error}", extra={"model": model})
            return LLMError(
                "LLM request timed out",
                code=ErrorCode.LLM_TIMEOUT,
                details={"model": model, "timeout": self._settings.timeout},
            )

        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            logger.error(f"LLM request failed: {status}", extra={"model": model})
            if status == 429:
                return LLMError(
                    "Rate limit exceeded",
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details={"model": model, "status_code": status},
                )
            return LLMError(
                f"LLM service returned {status}",
                code=ErrorCode.LLM_STREAM_ERROR if stream else ErrorCode.LLM_SERVICE_ERROR,
                details={"model": model, "status_code": status},
            )

        logger.error(f"LLM connection error: {error}", extra={"model": model})
        return LLMError(
            f"Failed to connect to LLM service: {error}",
            code=ErrorCode.LLM_STREAM_ERROR if stream else ErrorCode.LLM_SERVICE_ERROR,
            details={"model": model, "url": self._url},
        )


def _pick(override: Any, default: Any) -> Any:
    return default if override is None else override
