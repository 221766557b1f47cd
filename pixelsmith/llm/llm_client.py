"""
LLM client for pixelsmith stages.
"""
import asyncio
import io
from typing import List, Optional, Sequence, Union

import google.generativeai as genai
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import SystemMessage, HumanMessage

from pixelsmith.config import config
from pixelsmith.exceptions import ModelClientError
from pixelsmith.llm.retry import gemini_retry, model_error
from pixelsmith.schemas import FileInput
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "LLMClient")

PromptParts = Union[str, Sequence[str]]

VIDEO_POLL_INTERVAL = 2.0


class LLMClient:
    """Multimodal LLM client with common error handling and retries."""

    def __init__(self, model: str, temperature: float = 0, max_tokens: int = 4096):
        """
        Initialise LLM client.

        The provider is detected from the model name: `claude*` models go through
        langchain-anthropic, `gemini*` models through google-generativeai (needed for video).

        Args:
            model: Model name (e.g., claude-sonnet-4-5, gemini-2.5-pro)
            temperature: Sampling temperature (0.0 to 1.0)
            max_tokens: Default maximum tokens to generate
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        if model.startswith("claude"):
            self.provider = "anthropic"
            self.llm = ChatAnthropic(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                anthropic_api_key=config.ANTHROPIC_API_KEY,
                max_retries=config.LLM_MAX_RETRIES,
                timeout=config.LLM_TIMEOUT,
            )
        elif model.startswith("gemini"):
            self.provider = "google"
            genai.configure(api_key=config.GOOGLE_API_KEY)
            self.llm = None
        else:
            raise ValueError(f"Cannot auto-detect provider for model '{model}'")

        logger.debug(
            f"Initialised {self.provider} client: model={self.model}, temp={self.temperature}",
            correlation_id="INIT"
        )

    async def invoke(
        self,
        prompt_parts: PromptParts,
        attachments: Optional[List[FileInput]] = None,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> str:
        """
        Send a multimodal request and return the raw response text.

        Args:
            prompt_parts: One prompt string or an ordered list of text parts
            attachments: Images (and, for gemini models, videos) sent before the text
            system_prompt: System message content
            max_tokens: Override for the maximum tokens to generate
            correlation_id: Request correlation ID

        Returns:
            Raw text response from the model

        Raises:
            ModelClientError: When the call fails after all retries
        """
        parts = [prompt_parts] if isinstance(prompt_parts, str) else list(prompt_parts)
        attachments = attachments or []
        max_tokens = max_tokens or self.max_tokens

        logger.debug(
            f"Starting LLM call: model={self.model}, parts={len(parts)}, "
            f"attachments={len(attachments)}, max_tokens={max_tokens}",
            correlation_id=correlation_id
        )

        try:
            if self.provider == "anthropic":
                text = await self._anthropic_completion(parts, attachments, system_prompt, max_tokens)
            else:
                text = await self._gemini_completion(parts, attachments, system_prompt, max_tokens)
        except ModelClientError:
            raise
        except Exception as e:
            raise model_error(f"LLM call ({self.model})", e, correlation_id) from e

        logger.debug(f"LLM call successful ({len(text)} chars)", correlation_id=correlation_id)
        return text

    async def _anthropic_completion(
        self,
        parts: List[str],
        attachments: List[FileInput],
        system_prompt: Optional[str],
        max_tokens: int,
    ) -> str:
        content = []
        for attachment in attachments:
            if not attachment.is_image:
                raise ModelClientError(f"{self.model} cannot read {attachment.mime_type} attachments")
            content.append({"type": "image_url", "image_url": {"url": attachment.data_uri}})
        content.extend({"type": "text", "text": part} for part in parts)

        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=content))

        response = await self.llm.bind(max_tokens=max_tokens).ainvoke(messages)
        return _response_text(response.content)

    async def _gemini_completion(
        self,
        parts: List[str],
        attachments: List[FileInput],
        system_prompt: Optional[str],
        max_tokens: int,
    ) -> str:
        contents = []
        for attachment in attachments:
            if attachment.is_video:
                contents.append(await self._upload_video(attachment))
            else:
                contents.append({"mime_type": attachment.mime_type, "data": attachment.data})
        contents.extend(parts)

        model = genai.GenerativeModel(self.model, system_instruction=system_prompt or None)
        response = await model.generate_content_async(
            contents,
            generation_config={"temperature": self.temperature, "max_output_tokens": max_tokens},
            request_options={"retry": gemini_retry(), "timeout": config.LLM_TIMEOUT},
        )
        return response.text

    async def _upload_video(self, attachment: FileInput):
        """Upload a video through the Files API and wait until it is processed."""
        uploaded = await asyncio.to_thread(
            genai.upload_file,
            io.BytesIO(attachment.data),
            mime_type=attachment.mime_type,
            display_name=attachment.filename,
        )
        while uploaded.state.name == "PROCESSING":
            await asyncio.sleep(VIDEO_POLL_INTERVAL)
            uploaded = await asyncio.to_thread(genai.get_file, uploaded.name)

        if uploaded.state.name == "FAILED":
            raise ModelClientError(f"Video processing failed for {attachment.filename}")
        return uploaded


def _response_text(content) -> str:
    """Flatten a chat message content (string or content blocks) to text."""
    if isinstance(content, str):
        return content
    chunks = []
    for block in content:
        if isinstance(block, str):
            chunks.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            chunks.append(block.get("text", ""))
    return "".join(chunks)
