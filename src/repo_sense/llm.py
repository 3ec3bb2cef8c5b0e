import asyncio
import logging
from functools import lru_cache
from typing import Sequence

import openai
from openai import AsyncOpenAI

from repo_sense import config, models, prompts

logger = logging.getLogger(__name__)


class LLMError(Exception):
    pass


class LLMConfigurationError(LLMError):
    pass


class LLMRateLimitError(LLMError):
    pass


class LLMUnavailableError(LLMError):
    pass


@lru_cache
def _get_client(api_key: str, base_url: str) -> AsyncOpenAI:
    # Retries are handled here, not by the client
    return AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)


async def _complete(client: AsyncOpenAI, cfg: config.LLMConfig, prompt: str) -> str:
    response = await client.chat.completions.create(
        model=cfg.model_name,
        messages=[{"role": "user", "content": prompt}],
        max_tokens=cfg.max_new_tokens,
        temperature=cfg.temperature,
        timeout=cfg.request_timeout,
    )
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def _estimated_wait(exc: openai.APIStatusError, default: float) -> float:
    # The client unwraps the "error" key from exc.body, so read the raw response
    try:
        body = exc.response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    try:
        return float(body.get("estimated_time", default))
    except (TypeError, ValueError):
        return default


async def generate_text(prompt: str) -> str:
    """Run one completion, waiting once for a model that is still loading."""
    cfg = config.get_config().llm
    if not cfg.hf_api_key:
        raise LLMConfigurationError("Analysis service configuration error: API key not configured")
    client = _get_client(cfg.hf_api_key, cfg.hf_base_url)

    try:
        return await _complete(client, cfg, prompt)
    except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
        raise LLMConfigurationError("Analysis service configuration error") from exc
    except openai.RateLimitError as exc:
        raise LLMRateLimitError("Analysis service temporarily unavailable. Please try again later.") from exc
    except openai.APIStatusError as exc:
        if exc.status_code != 503:
            raise LLMError(f"Analysis service unavailable ({exc.status_code})") from exc
        wait = _estimated_wait(exc, cfg.default_model_wait)
    except openai.APIError as exc:
        raise LLMError(f"Analysis service unavailable: {exc}") from exc

    if wait >= cfg.max_model_wait:
        raise LLMUnavailableError("AI model unavailable. Please try again in a few minutes.")

    logger.info(f"Model is loading, retrying in {wait:.0f}s")
    await asyncio.sleep(wait)
    try:
        return await _complete(client, cfg, prompt)
    except openai.APIError as exc:
        raise LLMUnavailableError("AI model unavailable. Please try again in a few minutes.") from exc


async def analyze_chunks(chunks: Sequence[models.ContentChunk]) -> list[str]:
    """Analyze chunks one after another; a failed chunk yields a placeholder instead of aborting."""
    responses: list[str] = []
    for i, chunk in enumerate(chunks, 1):
        prompt = prompts.build_chunk_analysis_prompt(chunk.content)
        try:
            text = await generate_text(prompt)
        except LLMError as exc:
            logger.warning(f"Failed to analyze chunk {i}/{len(chunks)} ({chunk.file_count} files): {exc}")
            responses.append(prompts.UNAVAILABLE_PLACEHOLDER)
            continue
        except Exception:
            logger.exception(f"Unexpected error analyzing chunk {i}/{len(chunks)}")
            responses.append(prompts.UNAVAILABLE_PLACEHOLDER)
            continue
        if text:
            responses.append(text)
    return responses
