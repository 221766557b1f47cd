"""
Live editor that rewrites one selected element of an existing component file.
"""

from typing import Optional

from pixelsmith.components.edit.prompt import LIVE_EDITOR_SYSTEM_PROMPT, LIVE_EDITOR_EXECUTION_PROMPT
from pixelsmith.config import config
from pixelsmith.exceptions import LiveEditError
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import LiveEditResult
from pixelsmith.utils.decode import extract_code
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "LiveEditor")


class LiveEditor:
    """Targeted edits keyed by data-id; used for healing patches and the live-edit endpoint."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        cfg = config.get_live_editor_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised LiveEditor with model={self.model}", correlation_id="INIT")

    async def run(
        self,
        current_code: str,
        selected_data_id: str,
        instruction: str,
        correlation_id: Optional[str] = None
    ) -> LiveEditResult:
        """
        Apply one instruction to the element with `selected_data_id`.

        Never raises: on failure the original code is returned with success=False.
        """
        try:
            if not current_code:
                raise LiveEditError("current_code must be a non-empty string")

            raw_output = await self.llm_client.invoke(
                LIVE_EDITOR_EXECUTION_PROMPT.format(
                    current_code=current_code,
                    selected_data_id=selected_data_id,
                    instruction=instruction,
                ),
                system_prompt=LIVE_EDITOR_SYSTEM_PROMPT,
                correlation_id=correlation_id
            )

            updated_code = extract_code(raw_output)
            if not updated_code:
                raise LiveEditError("model returned no code")

            logger.info(f"Live edit applied to data-id={selected_data_id}", correlation_id=correlation_id)
            return LiveEditResult(updated_code=updated_code, success=True)

        except Exception as e:
            logger.warning(f"Live edit failed for data-id={selected_data_id}: {e}", correlation_id=correlation_id)
            return LiveEditResult(updated_code=current_code, success=False, error=str(e) or "Live edit failed")
