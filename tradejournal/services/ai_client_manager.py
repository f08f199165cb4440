"""
AI client manager for the mentor.

1. Several OpenAI-compatible providers (OpenAI first, DeepSeek as fallback)
2. Automatic fallback when a provider fails
3. Circuit breaker: a failing provider is skipped for a while
4. One call signature for every caller
"""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from tradejournal.core.config import settings

logger = logging.getLogger(__name__)


class AIProvider(str, Enum):
    OPENAI = "openai"
    DEEPSEEK = "deepseek"


# Client cache, one per provider
_clients: Dict[AIProvider, Any] = {}

# provider -> timestamp when it may be used again
_provider_circuit_breaker: Dict[AIProvider, float] = {}


def _init_openai_client():
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not configured")
        return None

    kwargs = {
        "api_key": settings.OPENAI_API_KEY,
        "timeout": settings.OPENAI_TIMEOUT_SECONDS,
    }
    if settings.OPENAI_API_BASE:
        kwargs["base_url"] = settings.OPENAI_API_BASE
    client = AsyncOpenAI(**kwargs)
    logger.info("OpenAI client initialized")
    return client


def _init_deepseek_client():
    """DeepSeek speaks the OpenAI wire format, so the same SDK is used."""
    if not settings.DEEPSEEK_ENABLED:
        logger.info("DeepSeek disabled in config")
        return None

    if not settings.DEEPSEEK_API_KEY:
        logger.warning("DEEPSEEK_API_KEY not configured")
        return None

    client = AsyncOpenAI(
        api_key=settings.DEEPSEEK_API_KEY,
        base_url=settings.DEEPSEEK_API_BASE,
        timeout=settings.DEEPSEEK_TIMEOUT_SECONDS,
    )
    logger.info(
        "DeepSeek client initialized (base_url: %s, timeout: %ds)",
        settings.DEEPSEEK_API_BASE,
        settings.DEEPSEEK_TIMEOUT_SECONDS,
    )
    return client


def get_ai_client(provider: AIProvider = AIProvider.OPENAI):
    """Lazily build and cache the client for ``provider``. None when unavailable or circuit-broken."""
    if provider in _provider_circuit_breaker:
        recovery_time = _provider_circuit_breaker[provider]
        if datetime.now().timestamp() < recovery_time:
            remaining = int(recovery_time - datetime.now().timestamp())
            logger.warning(f"{provider.value} is circuit-broken, recovery in {remaining}s")
            return None
        del _provider_circuit_breaker[provider]
        logger.info(f"{provider.value} circuit breaker recovered")

    if _clients.get(provider):
        return _clients[provider]

    if provider == AIProvider.OPENAI:
        _clients[provider] = _init_openai_client()
    elif provider == AIProvider.DEEPSEEK:
        _clients[provider] = _init_deepseek_client()
    else:
        logger.error(f"Unknown AI provider: {provider}")
        return None

    return _clients[provider]


def circuit_break_provider(provider: AIProvider, duration_seconds: int = 300):
    recovery_time = datetime.now().timestamp() + duration_seconds
    _provider_circuit_breaker[provider] = recovery_time
    logger.warning(f"Circuit breaking {provider.value} for {duration_seconds}s")


def get_model_for_provider(provider: AIProvider) -> str:
    if provider == AIProvider.DEEPSEEK:
        return settings.DEEPSEEK_MODEL
    return settings.OPENAI_MODEL


def provider_sequence() -> List[AIProvider]:
    """Configured providers, preferred one first. Unknown names are skipped."""
    configured = settings.AI_PROVIDERS
    # Env values may arrive as a comma separated string
    if isinstance(configured, str):
        configured = [p.strip() for p in configured.split(",") if p.strip()]

    providers: List[AIProvider] = []
    for name in configured:
        try:
            providers.append(AIProvider(name.lower().strip()))
        except ValueError:
            logger.warning(f"Unknown AI provider in settings: {name}")

    preferred = settings.AI_PREFERRED_PROVIDER
    if preferred:
        try:
            pref = AIProvider(preferred.lower().strip())
        except ValueError:
            pref = None
        if pref in providers:
            providers.remove(pref)
            providers.insert(0, pref)

    return providers or [AIProvider.OPENAI, AIProvider.DEEPSEEK]


def clean_content(content: str, provider: AIProvider, json_mode: bool) -> str:
    """Strip reasoning blocks and markdown fences the providers like to add."""
    if "<think>" in content and "</think>" in content:
        content = content.split("</think>")[-1].strip()

    if json_mode:
        if "```json" in content:
            content = content.split("```json")[1].split("```")[0].strip()
        elif "```" in content:
            parts = content.split("```")
            if len(parts) >= 3:
                content = parts[1].strip()
        if content and not (content.startswith("{") and content.endswith("}")):
            match = re.search(r"(\{.*\})", content, re.DOTALL)
            if match:
                logger.debug(f"AI Provider ({provider.value}) JSON regex extraction used")
                content = match.group(1).strip()
    return content.strip()


async def call_ai_with_fallback(
    messages: List[Dict[str, str]],
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
    response_format: Optional[Dict[str, Any]] = None,
) -> Tuple[Optional[str], Optional[AIProvider]]:
    """
    Ask each configured provider in turn until one returns content.

    Args:
        messages: chat messages [{"role": "user", "content": "..."}]
        temperature: sampling temperature
        max_tokens: completion limit, defaults to OPENAI_MAX_TOKENS
        response_format: e.g. {"type": "json_object"}

    Returns:
        (text, provider) or (None, None) when every provider failed
    """
    max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS
    json_mode = bool(response_format and response_format.get("type") == "json_object")
    providers = provider_sequence()
    last_error: Optional[Exception] = None

    for provider in providers:
        client = get_ai_client(provider)
        if not client:
            continue

        model = get_model_for_provider(provider)
        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            kwargs["response_format"] = response_format

        try:
            logger.info(f"AI Provider ({provider.value}) request | model: {model} | messages: {len(messages)}")
            response = await client.chat.completions.create(**kwargs)
            content = response.choices[0].message.content or ""
            content = clean_content(content, provider, json_mode)

            if not content:
                logger.warning(f"AI Provider ({provider.value}) returned empty content")
                last_error = Exception(f"{provider.value} returned empty content")
                continue

            logger.info(f"AI Provider ({provider.value}) success | model: {model} | length: {len(content)}")
            return content, provider

        except Exception as e:
            error_str = str(e)
            logger.error(f"AI Provider ({provider.value}) error | model: {model} | {error_str}")
            last_error = e

            is_timeout = "timeout" in error_str.lower() or "timed out" in error_str.lower()
            if "429" in error_str or "insufficient_quota" in error_str:
                circuit_break_provider(provider, duration_seconds=600)
            elif "401" in error_str or "authentication" in error_str.lower():
                circuit_break_provider(provider, duration_seconds=1800)
            elif is_timeout:
                circuit_break_provider(provider, duration_seconds=120)
            continue

    if last_error:
        logger.error(f"All AI providers failed. Last error: {last_error}")
    else:
        logger.error("No AI provider configured")
    return None, None


def get_circuit_breaker_status() -> Dict[str, Any]:
    now = datetime.now().timestamp()
    status = {}
    for provider, recovery_time in _provider_circuit_breaker.items():
        remaining = int(recovery_time - now)
        if remaining > 0:
            status[provider.value] = {
                "broken": True,
                "recovery_in_seconds": remaining,
            }
    return status
