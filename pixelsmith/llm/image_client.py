"""
Image generation client (OpenAI Images API).
"""
from typing import Optional

from openai import AsyncOpenAI

from pixelsmith.config import config
from pixelsmith.llm.retry import model_error
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "ImageClient")


class ImageClient:
    """Generates one image per prompt and returns it as a URL or data URI."""

    def __init__(self, model: str, size: str = "1024x1024"):
        self.model = model
        self.size = size
        self.client = AsyncOpenAI(
            api_key=config.OPENAI_API_KEY,
            max_retries=config.LLM_MAX_RETRIES,
            timeout=config.LLM_TIMEOUT,
        )
        logger.debug(f"Initialised image client: model={self.model}, size={self.size}", correlation_id="INIT")

    async def generate(self, prompt: str, correlation_id: Optional[str] = None) -> str:
        try:
            response = await self.client.images.generate(model=self.model, prompt=prompt, size=self.size, n=1)
        except Exception as e:
            raise model_error(f"Image generation ({self.model})", e, correlation_id) from e

        image = response.data[0]
        if image.url:
            return image.url
        return f"data:image/png;base64,{image.b64_json}"
