"""
Surveyor stage that reverse engineers a screenshot into a visual manifest.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.components.survey.prompt import SURVEYOR_SYSTEM_PROMPT, SURVEYOR_EXECUTION_PROMPT
from pixelsmith.config import config
from pixelsmith.constants import STAGE_SURVEYOR
from pixelsmith.exceptions import SurveyorError
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import Canvas, DomNode, FileInput, VisualManifest
from pixelsmith.utils.decode import Malformed, decode_json, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Surveyor")


class Surveyor(BaseStage):
    """Surveyor stage: one manifest per measured image."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        super().__init__(stage_name=STAGE_SURVEYOR)

        cfg = config.get_surveyor_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised Surveyor with model={self.model}", correlation_id="INIT")

    async def run(self, file: FileInput, file_index: int, correlation_id: Optional[str] = None) -> VisualManifest:
        """Survey one image. An invalid reply yields a default 1440x900 manifest without a tree."""
        if not file.is_image:
            raise SurveyorError(f"Input {file_index} is not an image ({file.mime_type})")

        raw_output = await self.llm_client.invoke(
            SURVEYOR_EXECUTION_PROMPT.format(file_index=file_index),
            attachments=[file],
            system_prompt=SURVEYOR_SYSTEM_PROMPT,
            correlation_id=correlation_id
        )

        decoded = decode_json(raw_output)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Survey of input {file_index} unparseable ({decoded.reason}). Preview: {preview(decoded.raw)}",
                correlation_id=correlation_id
            )
            return VisualManifest(file_index=file_index)

        manifest = parse_manifest(decoded.value, file_index)
        if manifest is None:
            logger.warning(
                f"Survey of input {file_index} missing canvas dimensions or dom_tree, using default manifest",
                correlation_id=correlation_id
            )
            return VisualManifest(file_index=file_index)

        node_count = sum(1 for _ in manifest.dom_tree.walk())
        logger.info(
            f"Surveyed input {file_index}: canvas={manifest.canvas.width}x{manifest.canvas.height}, nodes={node_count}",
            correlation_id=correlation_id
        )
        return manifest

    async def survey_all(
        self,
        files: List[FileInput],
        indices: List[int],
        correlation_id: Optional[str] = None
    ) -> List[VisualManifest]:
        """Survey the requested inputs one after another, in index order."""
        return [await self.run(files[i], i, correlation_id) for i in indices]

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        manifests = await self.survey_all(
            files=state["input"].files,
            indices=state["strategy"].execution_plan.measure_pixels,
            correlation_id=state.get("correlation_id")
        )
        return {"manifests": manifests}


def parse_manifest(data: Dict[str, Any], file_index: int) -> Optional[VisualManifest]:
    """Validate a surveyor reply: numeric canvas size and an object dom_tree are required."""
    canvas = data.get("canvas")
    if not isinstance(canvas, dict):
        return None
    width, height = canvas.get("width"), canvas.get("height")
    if not _is_number(width) or not _is_number(height):
        return None

    tree = data.get("dom_tree")
    if not isinstance(tree, dict):
        return None

    try:
        return VisualManifest(
            file_index=file_index,
            canvas=Canvas(width=width, height=height, background=_as_str(canvas.get("background"))),
            dom_tree=DomNode.model_validate(tree),
            assets_needed=data.get("assets_needed") if isinstance(data.get("assets_needed"), list) else [],
        )
    except ValidationError:
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
