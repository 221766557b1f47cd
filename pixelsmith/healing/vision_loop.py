"""
Vision healing loop: render -> critique -> patch or regenerate, until a stop condition.
"""

import json
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field

from pixelsmith.components.critique.critic import Critic, format_critique
from pixelsmith.components.edit.live_editor import LiveEditor
from pixelsmith.components.render.renderer import Renderer
from pixelsmith.config import config
from pixelsmith.constants import (
    DEFAULT_ENTRY_PATH,
    RECOMMEND_ACCEPT,
    RECOMMEND_REFINE,
    STOP_ERROR,
    STOP_MAX_ITERATIONS,
    STOP_NO_REFERENCE,
    STOP_THRESHOLD_MET,
)
from pixelsmith.schemas import (
    AppFile,
    ComponentSummary,
    Critique,
    FileInput,
    HealingResult,
    VisualManifest,
)
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "VisionLoop")

# Receives the critique text, returns a complete replacement file set
RegenerateFn = Callable[[str], Awaitable[List[AppFile]]]


class HealingLoopResult(BaseModel):
    files: List[AppFile] = Field(default_factory=list)
    fidelity_score: float = 0
    iterations: int = 0
    stop_reason: str
    used_patching: bool = False

    def summary(self) -> HealingResult:
        return HealingResult(
            fidelity_score=self.fidelity_score,
            iterations=self.iterations,
            stop_reason=self.stop_reason,
            used_patching=self.used_patching,
        )


class VisionLoop:
    """
    Iteratively closes the gap between the rendered output and the reference image.

    Per iteration the current files are rendered and critiqued. The loop stops when the
    critique accepts or reaches the target fidelity, when the iteration budget is spent
    (the last critiqued files are returned unchanged), or on any error (the last good
    files are returned). Between iterations, "refine" critiques with exact corrections
    for known components are patched in place; everything else is regenerated.

    `regenerate` is a closure built by the caller over the physics, strategy, instructions,
    assets and repo context of the run, so only the critique text crosses into it.
    """

    def __init__(
        self,
        critic: Optional[Critic] = None,
        renderer: Optional[Renderer] = None,
        live_editor: Optional[LiveEditor] = None,
        max_iterations: int = None,
        target_fidelity: float = None
    ):
        cfg = config.get_healing_config()
        self.critic = critic or Critic()
        self.renderer = renderer or Renderer()
        self.live_editor = live_editor or LiveEditor()
        self.max_iterations = max_iterations if max_iterations is not None else cfg["max_iterations"]
        self.target_fidelity = target_fidelity if target_fidelity is not None else cfg["target_fidelity"]

    async def run_loop(
        self,
        files: List[AppFile],
        original_image: Optional[FileInput],
        manifests: List[VisualManifest],
        regenerate: RegenerateFn,
        correlation_id: Optional[str] = None
    ) -> HealingLoopResult:
        if original_image is None:
            return HealingLoopResult(files=files, stop_reason=STOP_NO_REFERENCE)

        components = component_list(manifests)
        component_ids = [c.id for c in components]

        current = files
        used_patching = False
        score = 0.0

        for iteration in range(1, self.max_iterations + 1):
            try:
                rendered = await self.renderer.render(current, correlation_id=correlation_id)
                critique = await self.critic.run(
                    original_image, rendered, components, self.target_fidelity, correlation_id=correlation_id
                )
            except Exception as e:
                logger.warning(f"Healing iteration {iteration} failed: {e}", correlation_id=correlation_id)
                return HealingLoopResult(
                    files=current, fidelity_score=score, iterations=iteration,
                    stop_reason=STOP_ERROR, used_patching=used_patching
                )

            score = critique.fidelity_score
            logger.info(
                f"Healing iteration {iteration}/{self.max_iterations}: fidelity={score} "
                f"recommendation={critique.recommendation}",
                correlation_id=correlation_id
            )

            if critique.recommendation == RECOMMEND_ACCEPT or score >= self.target_fidelity:
                return HealingLoopResult(
                    files=current, fidelity_score=score, iterations=iteration,
                    stop_reason=STOP_THRESHOLD_MET, used_patching=used_patching
                )

            if iteration == self.max_iterations:
                break

            try:
                patched = None
                if critique.recommendation == RECOMMEND_REFINE:
                    patched = await self._patch(current, critique, component_ids, correlation_id)

                if patched is not None:
                    current, used_patching = patched, True
                else:
                    regenerated = await regenerate(format_critique(critique))
                    if not regenerated:
                        raise ValueError("regeneration produced no files")
                    current, used_patching = regenerated, False
            except Exception as e:
                logger.warning(f"Healing repair after iteration {iteration} failed: {e}", correlation_id=correlation_id)
                return HealingLoopResult(
                    files=current, fidelity_score=score, iterations=iteration,
                    stop_reason=STOP_ERROR, used_patching=used_patching
                )

        return HealingLoopResult(
            files=current, fidelity_score=score, iterations=self.max_iterations,
            stop_reason=STOP_MAX_ITERATIONS, used_patching=used_patching
        )

    async def _patch(
        self,
        files: List[AppFile],
        critique: Critique,
        component_ids: List[str],
        correlation_id: Optional[str]
    ) -> Optional[List[AppFile]]:
        """Apply every patchable correction to the entry file; None when nothing could be patched."""
        targets = [d for d in critique.discrepancies if d.is_patchable(component_ids)]
        entry = next((f for f in files if f.path == DEFAULT_ENTRY_PATH), files[0] if files else None)
        if not targets or entry is None:
            return None

        code = entry.content
        applied = 0
        for d in targets:
            instruction = f"{d.issue}. Apply exactly this correction: {json.dumps(d.correction)}"
            result = await self.live_editor.run(code, d.component_id, instruction, correlation_id=correlation_id)
            if result.success:
                code = result.updated_code
                applied += 1

        if not applied:
            logger.info("No component patch succeeded, falling back to regeneration", correlation_id=correlation_id)
            return None

        logger.info(f"Patched {applied}/{len(targets)} components", correlation_id=correlation_id)
        return [AppFile(path=f.path, content=code) if f.path == entry.path else f for f in files]


def component_list(manifests: List[VisualManifest]) -> List[ComponentSummary]:
    """Flatten every manifest DOM tree into unique (id, type, text) summaries."""
    seen = set()
    components = []
    for manifest in manifests:
        if manifest.dom_tree is None:
            continue
        for node in manifest.dom_tree.walk():
            if node.id and node.id not in seen:
                seen.add(node.id)
                components.append(ComponentSummary(id=node.id, type=node.type, text=node.text))
    return components
