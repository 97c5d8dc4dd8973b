"""
Gateway client for the AI gateway.

Provides a wrapper around the OpenAI SDK pointed at an OpenAI-compatible
gateway that routes provider-qualified model identifiers
(e.g. 'anthropic/claude-3-5-sonnet-20241022'). Generation is streamed and
attempted exactly once; every failure surfaces as a GatewayError.
"""

import asyncio
import logging
import time
from typing import AsyncIterator

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    OpenAIError,
    RateLimitError,
)

from cefr_grader.config import Settings, get_settings
from cefr_grader.models import GatewayResponse, GenerationMetrics, ModelConfig
from cefr_grader.registry import ModelRegistry, UnknownModelError

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when a gateway call fails."""

    def __init__(self, message: str, cause: Exception | None = None, retryable: bool = False):
        self.cause = cause
        self.retryable = retryable
        super().__init__(message)


class GatewayClient:
    """
    Client for streaming text generation through the AI gateway.

    Resolves registry keys to gateway identifiers and issues a single
    streaming chat completion per call. No retries are attempted.
    """

    def __init__(self, settings: Settings | None = None, registry: ModelRegistry | None = None):
        """
        Initialize the gateway client.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
            registry: Model registry. Uses the built-in registry if not provided.
        """
        self._settings = settings or get_settings()
        self._registry = registry or ModelRegistry()
        self._client = AsyncOpenAI(
            # The SDK refuses to start without a key; calls then fail with 401.
            api_key=self._settings.gateway_api_key or "missing-api-key",
            base_url=self._settings.gateway_base_url,
            timeout=self._settings.gateway_timeout_seconds,
            max_retries=0,
        )

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    async def stream(
        self,
        model_key: str,
        prompt: str,
        max_output_tokens: int,
        temperature: float | None = None,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        """
        Stream the text of one generation, chunk by chunk.

        The iterator is lazy, finite and cannot be restarted.

        Raises:
            GatewayError: On unknown model, auth, network, rate-limit or status errors.
        """
        model = self._resolve(model_key)
        temp = temperature if temperature is not None else self._settings.grading_temperature

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response_stream = await self._client.chat.completions.create(
                model=model.gateway_id,
                messages=messages,  # type: ignore[arg-type]
                temperature=temp,
                max_tokens=max_output_tokens,
                stream=True,
            )
            async with response_stream:
                async for chunk in response_stream:
                    if not chunk.choices:
                        continue
                    content = chunk.choices[0].delta.content
                    if content:
                        yield content
        except AuthenticationError as e:
            raise GatewayError(f"Gateway authentication failed: {e.message}", cause=e) from e
        except RateLimitError as e:
            raise GatewayError("Gateway rate limit exceeded", cause=e, retryable=True) from e
        except APITimeoutError as e:
            raise GatewayError("Gateway request timed out", cause=e, retryable=True) from e
        except APIConnectionError as e:
            raise GatewayError(f"Gateway connection failed: {e}", cause=e, retryable=True) from e
        except APIStatusError as e:
            raise GatewayError(
                f"Gateway error {e.status_code}: {e.message}",
                cause=e,
                retryable=e.status_code >= 500,
            ) from e
        except OpenAIError as e:
            raise GatewayError(f"Gateway stream aborted: {e}", cause=e) from e
        except httpx.TransportError as e:
            # The SDK does not wrap transport errors raised while reading the body.
            raise GatewayError(f"Gateway stream aborted: {e!r}", cause=e, retryable=True) from e

    async def generate(
        self,
        model_key: str,
        prompt: str,
        max_output_tokens: int,
        temperature: float | None = None,
        system_prompt: str | None = None,
    ) -> GatewayResponse:
        """
        Generate a complete response by consuming the stream.

        Args:
            model_key: Registry key of the model to use.
            prompt: User prompt.
            max_output_tokens: Output token ceiling.
            temperature: Override temperature (uses config default if None).
            system_prompt: Optional system message.

        Returns:
            The concatenated text with timing metrics.

        Raises:
            GatewayError: If the call fails, exceeds the deadline or returns no text.
        """
        model = self._resolve(model_key)
        started = time.perf_counter()
        first_chunk_at: float | None = None
        chunks: list[str] = []

        async def consume() -> None:
            nonlocal first_chunk_at
            async for chunk in self.stream(
                model_key, prompt, max_output_tokens, temperature, system_prompt
            ):
                if first_chunk_at is None:
                    first_chunk_at = time.perf_counter()
                    logger.info(
                        "First chunk from %s after %.0fms",
                        model.gateway_id,
                        (first_chunk_at - started) * 1000,
                    )
                chunks.append(chunk)

        try:
            await asyncio.wait_for(consume(), timeout=self._settings.gateway_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise GatewayError(
                f"Generation exceeded {self._settings.gateway_timeout_seconds}s deadline",
                cause=e,
                retryable=True,
            ) from e

        text = "".join(chunks)
        if not text.strip():
            raise GatewayError(f"Empty response from {model.gateway_id}")

        finished = time.perf_counter()
        metrics = GenerationMetrics(
            time_to_first_chunk_ms=(
                (first_chunk_at - started) * 1000 if first_chunk_at is not None else None
            ),
            total_time_ms=(finished - started) * 1000,
            chunk_count=len(chunks),
        )
        logger.info(
            "Generation with %s completed in %.0fms (%d chunks)",
            model.gateway_id,
            metrics.total_time_ms,
            metrics.chunk_count,
        )

        return GatewayResponse(
            model_key=model.key,
            model_name=model.name,
            provider=model.provider,
            text=text,
            metrics=metrics,
        )

    def _resolve(self, model_key: str) -> ModelConfig:
        try:
            return self._registry.resolve(model_key)
        except UnknownModelError as e:
            raise GatewayError(str(e), cause=e) from e

    async def health_check(self, model_key: str | None = None) -> bool:
        """
        Check if the gateway is reachable.

        Returns:
            True if a tiny generation succeeds, False otherwise.
        """
        try:
            await self.generate(
                model_key or self._settings.default_model_key,
                "ping",
                max_output_tokens=16,
            )
            return True
        except GatewayError as e:
            logger.warning("Gateway health check failed: %s", e)
            return False

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
