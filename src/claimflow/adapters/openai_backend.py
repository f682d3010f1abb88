# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Claimflow Contributors

"""OpenAI-compatible chat-completions backend for claim analysis.

Works with any provider that implements the OpenAI chat-completions API
(OpenAI, Ollama's /v1 endpoint, Together AI, Fireworks, ...).

Requires the ``openai`` package (``pip install claimflow[llm]``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from .llm_analysis import ANALYSIS_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def create_openai_backend(
    base_url: str,
    api_key: str,
    model: str,
    timeout: float = 60.0,
    system_prompt: str | None = None,
    temperature: float | None = 0.1,
) -> Callable[[str], Coroutine[Any, Any, str]]:
    """Return an async ``(prompt: str) -> str`` callable for ``LLMAnalysisProvider``.

    Args:
        base_url: API root URL, e.g. ``"https://api.openai.com/v1"`` or
            ``"http://localhost:11434/v1"`` for Ollama.
        api_key: API key. For providers that don't require one, pass any
            non-empty string.
        model: Model identifier.
        timeout: Request timeout in seconds.
        system_prompt: System message sent before the prompt. Defaults to
            the fact-checking instructions.
        temperature: Sampling temperature, or None for the provider default.

    Raises:
        ImportError: If the ``openai`` package is not installed.
        openai.APIError: At call time, if the provider returns an error.
    """
    try:
        from openai import AsyncOpenAI
    except ImportError as exc:
        raise ImportError(
            "The 'openai' package is required for the OpenAI-compatible backend. "
            "Install it with: pip install 'claimflow[llm]'"
        ) from exc

    client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)
    effective_system = system_prompt if system_prompt is not None else ANALYSIS_SYSTEM_PROMPT

    async def backend(prompt: str) -> str:
        extra: dict[str, Any] = {}
        if temperature is not None:
            extra["temperature"] = temperature

        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": effective_system},
                {"role": "user", "content": prompt},
            ],  # type: ignore[arg-type]
            **extra,
        )

        content = response.choices[0].message.content
        if content is None:
            raise RuntimeError(f"OpenAI-compat backend ({base_url}) returned empty content for model {model!r}")

        logger.debug("OpenAI-compat backend: received %d chars (model=%s url=%s)", len(content), model, base_url)
        return content

    backend.__name__ = f"openai_compat_backend({model}@{base_url})"  # type: ignore[attr-defined]
    return backend
