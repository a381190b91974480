"""LiteLLMAdapter: provider adapter that reaches any backend through LiteLLM."""

import time
from typing import Any

import litellm

from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.config.domain.model import ModelConfig
from multi_eval.envelope.domain.item import ResultItem, ResultKind
from multi_eval.provider.domain.observer import ProviderObserver
from multi_eval.provider.infrastructure.errors import ProviderInvocationError


class LiteLLMAdapter:
    """Adapter for one registered model, delegating the call to LiteLLM.

    One instance serves every invocation of its model id; per-call state
    lives on the stack so concurrent invocations never interfere.
    """

    def __init__(self, config: ModelConfig, observer: ProviderObserver) -> None:
        self._config = config
        self._observer = observer

    async def invoke(
        self,
        model_id: str,
        prompt: str,
        config: GenerationConfig,
        kind: ResultKind = ResultKind.MODEL_OUTPUT,
        instructions: str | None = None,
        json_output: bool = False,
    ) -> ResultItem:
        """Call the backend and map the response (or failure) to a ResultItem."""
        self._observer.provider_invocation_started(
            model_id=model_id, provider_model=self._config.model, kind=kind.value
        )

        start = time.monotonic()
        try:
            text = await self._complete(
                prompt=prompt,
                config=config,
                instructions=instructions,
                json_output=json_output,
            )
        except ProviderInvocationError as exc:
            latency_ms = _elapsed_ms(start)
            self._observer.provider_invocation_failed(
                model_id=model_id, latency_ms=latency_ms, reason=exc.reason
            )
            return ResultItem.failure(
                kind=kind, model_id=model_id, error=exc.reason, latency_ms=latency_ms
            )

        latency_ms = _elapsed_ms(start)
        self._observer.provider_invocation_completed(
            model_id=model_id, latency_ms=latency_ms, output_chars=len(text)
        )
        return ResultItem.success(
            kind=kind, model_id=model_id, text=text, latency_ms=latency_ms
        )

    async def _complete(
        self,
        prompt: str,
        config: GenerationConfig,
        instructions: str | None,
        json_output: bool,
    ) -> str:
        """Run the completion and return its text.

        Raises:
            ProviderInvocationError: on any LiteLLM error or an empty or
                malformed response.
        """
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "messages": _build_messages(
                prompt=prompt, config=config, instructions=instructions
            ),
        }
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}
        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            raise ProviderInvocationError(reason=reason) from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise ProviderInvocationError(reason="malformed provider response") from exc

        if not isinstance(content, str) or not content.strip():
            raise ProviderInvocationError(reason="empty response from provider")
        return content


def _build_messages(
    prompt: str, config: GenerationConfig, instructions: str | None
) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    system_prompt = config.effective_system_prompt
    if system_prompt is not None:
        messages.append({"role": "system", "content": system_prompt})
    if instructions:
        messages.append({"role": "system", "content": instructions})
    messages.append({"role": "user", "content": prompt})
    return messages


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
