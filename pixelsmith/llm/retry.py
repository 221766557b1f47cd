"""
Retry policy and error mapping for model provider calls.

Anthropic and OpenAI clients retry inside their SDKs (`max_retries`). Gemini requests
take a google-api-core retry object through `request_options`.
"""
from google.api_core import retry_async

from pixelsmith.config import config
from pixelsmith.exceptions import ModelClientError
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "ModelCall")


def gemini_retry() -> retry_async.AsyncRetry:
    """Exponential backoff on 429/500/503 from the Gemini API, bounded by LLM_TIMEOUT."""
    return retry_async.AsyncRetry(
        predicate=retry_async.if_transient_error,
        initial=config.LLM_RETRY_BASE_DELAY,
        maximum=config.LLM_RETRY_MAX_DELAY,
        multiplier=2,
        timeout=config.LLM_TIMEOUT,
    )


def model_error(label: str, error: Exception, correlation_id: str = None) -> ModelClientError:
    """Log a failed provider call (after the SDK's own retries) and wrap it."""
    logger.error(f"{label} failed: {type(error).__name__}: {error}", correlation_id=correlation_id)
    return ModelClientError(f"{label} failed: {error}")
