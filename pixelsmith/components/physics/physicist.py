"""
Physicist stage that extracts motion physics from video inputs.
"""

from typing import Any, Dict, List, Optional

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.components.physics.prompt import PHYSICIST_SYSTEM_PROMPT, PHYSICIST_EXECUTION_PROMPT
from pixelsmith.config import config
from pixelsmith.constants import STAGE_PHYSICIST
from pixelsmith.exceptions import PhysicistError
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import FileInput, MotionPhysics
from pixelsmith.utils.decode import Malformed, decode_json, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Physicist")


class Physicist(BaseStage):
    """Physicist stage: spring/gravity/timing descriptors per moving component."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        super().__init__(stage_name=STAGE_PHYSICIST)

        cfg = config.get_physicist_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised Physicist with model={self.model}", correlation_id="INIT")

    async def run(self, videos: List[FileInput], correlation_id: Optional[str] = None) -> MotionPhysics:
        if not videos:
            return MotionPhysics()
        not_video = [v.filename for v in videos if not v.is_video]
        if not_video:
            raise PhysicistError(f"Physics extraction needs video inputs, got: {', '.join(not_video)}")

        raw_output = await self.llm_client.invoke(
            PHYSICIST_EXECUTION_PROMPT.format(video_count=len(videos)),
            attachments=videos,
            system_prompt=PHYSICIST_SYSTEM_PROMPT,
            correlation_id=correlation_id
        )

        decoded = decode_json(raw_output)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Physics output unparseable ({decoded.reason}). Preview: {preview(decoded.raw)}",
                correlation_id=correlation_id
            )
            return MotionPhysics()

        motions = decoded.value.get("component_motions")
        if not isinstance(motions, list):
            logger.warning("Physics output has no component_motions list", correlation_id=correlation_id)
            return MotionPhysics()

        physics = MotionPhysics(component_motions=[m for m in motions if isinstance(m, dict)])
        logger.info(f"Extracted {len(physics.component_motions)} component motions", correlation_id=correlation_id)
        return physics

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        files = state["input"].files
        videos = [
            files[i] for i in state["strategy"].execution_plan.extract_physics
            if i < len(files) and files[i].is_video
        ]
        physics = await self.run(videos, correlation_id=state.get("correlation_id"))
        return {"physics": physics}
