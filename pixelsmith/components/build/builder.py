"""
Builder stage that synthesizes the application code.
"""

import re
from typing import Any, Dict, List, Optional

from pixelsmith.components.base_stage import BaseStage
from pixelsmith.components.build.prompt import BUILDER_SYSTEM_PROMPT, INDEX_TSX, build_builder_prompt
from pixelsmith.config import config
from pixelsmith.constants import DEFAULT_ENTRY_PATH, DEFAULT_INDEX_PATH
from pixelsmith.exceptions import BuilderError
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import (
    AppFile,
    ComponentStructure,
    ExecutionStrategy,
    MotionPhysics,
    RepoContext,
    VisualManifest,
    default_entry_file,
)
from pixelsmith.utils.decode import extract_code
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "Builder")

THREE_D_INTENT = re.compile(
    r"\b(3d|three\.?js|webgl|webgpu|r3f|react[- ]three|glsl|shaders?)\b",
    re.IGNORECASE
)


def wants_3d(strategy: ExecutionStrategy, instructions: str) -> bool:
    """3D guidance is included when the strategy flags it or the instructions ask for it."""
    return strategy.execution_plan.enable_3d or bool(THREE_D_INTENT.search(instructions or ""))


class Builder(BaseStage):
    """Builder stage: returns the entry file plus the React bootstrap file."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        super().__init__(stage_name="Builder")

        cfg = config.get_builder_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised Builder with model={self.model}", correlation_id="INIT")

    async def run(
        self,
        structure: Optional[ComponentStructure],
        manifests: List[VisualManifest],
        physics: Optional[MotionPhysics],
        strategy: ExecutionStrategy,
        current_code: Optional[str],
        instructions: str,
        assets: Dict[str, str],
        repo_context: Optional[RepoContext] = None,
        correlation_id: Optional[str] = None
    ) -> List[AppFile]:
        include_3d = wants_3d(strategy, instructions)
        prompt = build_builder_prompt(
            structure=structure,
            manifests=manifests,
            physics=physics,
            strategy=strategy,
            current_code=current_code,
            instructions=instructions,
            assets=assets,
            repo_context=repo_context,
            include_3d=include_3d,
        )

        raw_output = await self.llm_client.invoke(
            prompt,
            system_prompt=BUILDER_SYSTEM_PROMPT,
            correlation_id=correlation_id
        )

        code = extract_code(raw_output)
        if not code:
            raise BuilderError("model returned no code")

        logger.info(
            f"Built {DEFAULT_ENTRY_PATH} ({len(code)} chars, 3d={include_3d}, "
            f"from={'structure' if structure is not None and not structure.is_empty else 'manifests'})",
            correlation_id=correlation_id
        )
        return [
            AppFile(path=DEFAULT_ENTRY_PATH, content=code),
            AppFile(path=DEFAULT_INDEX_PATH, content=INDEX_TSX),
        ]

    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        pipeline_input = state["input"]
        files = await self.run(
            structure=state.get("structure"),
            manifests=state.get("manifests", []),
            physics=state.get("physics"),
            strategy=state["strategy"],
            current_code=pipeline_input.current_code,
            instructions=pipeline_input.instructions,
            assets=state.get("assets", {}),
            repo_context=pipeline_input.repo_context,
            correlation_id=state.get("correlation_id")
        )
        return {"files": files}

    def _fallback(self, state: Dict[str, Any]) -> Dict[str, Any]:
        current_code = state["input"].current_code
        return {"files": [default_entry_file(current_code)] if current_code else []}
