"""
Pipeline data model: inputs, stage outputs and the pipeline result contract.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from pixelsmith.constants import (
    DEFAULT_ENTRY_PATH,
    GLOBAL_COMPONENT_IDS,
    MODE_CREATE,
    MODE_EDIT,
    MODE_MERGE,
    MODE_RESEARCH_AND_BUILD,
)
from pixelsmith.swarm.schemas import Command, SuspendedState


class FileInput(BaseModel):
    """One uploaded reference file."""
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    filename: str = "upload"

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


class RepoContext(BaseModel):
    """Read-only description of the repository the generated code lands in."""
    model_config = ConfigDict(frozen=True)

    style_guide: str = ""
    pattern_library: List[str] = Field(default_factory=list)
    critical_files: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list)
    critical_files_require_tests: bool = False


class PipelineInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    files: List[FileInput] = Field(default_factory=list)
    instructions: str = ""
    current_code: Optional[str] = None
    repo_context: Optional[RepoContext] = None
    skip_healing: bool = False

    def reference_image(self) -> Optional[FileInput]:
        """First image among the uploads, used as the healing reference."""
        return next((f for f in self.files if f.is_image), None)


# Router

class AssetRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    vibe: str = "photorealistic"
    type: Optional[str] = None


class ExecutionPlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    measure_pixels: List[int] = Field(default_factory=list)
    extract_physics: List[int] = Field(default_factory=list)
    preserve_existing_code: bool = False
    enable_3d: bool = False
    generate_assets: List[AssetRequest] = Field(default_factory=list)


class ExecutionStrategy(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    mode: Literal[MODE_CREATE, MODE_MERGE, MODE_EDIT, MODE_RESEARCH_AND_BUILD] = MODE_CREATE
    base_source: Optional[str] = None
    file_roles: List[Any] = Field(default_factory=list)
    execution_plan: ExecutionPlan = Field(default_factory=ExecutionPlan)


# Surveyor

class ExtractionBounds(BaseModel):
    """Crop rectangle as percentages (0-100) of the full image."""
    top: float
    left: float
    width: float
    height: float


class DomNode(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str = "div"
    id: Optional[str] = None
    styles: Dict[str, Any] = Field(default_factory=dict)
    text: Optional[str] = None
    has_custom_visual: bool = Field(default=False, alias="hasCustomVisual")
    extraction_bounds: Optional[ExtractionBounds] = Field(default=None, alias="extractionBounds")
    icon_svg_path: Optional[str] = Field(default=None, alias="iconSvgPath")
    children: List["DomNode"] = Field(default_factory=list)

    def walk(self):
        """Depth-first iteration over this node and all descendants."""
        yield self
        for child in self.children:
            yield from child.walk()


class Canvas(BaseModel):
    width: float = 1440
    height: float = 900
    background: Optional[str] = None


class VisualManifest(BaseModel):
    file_index: int
    canvas: Canvas = Field(default_factory=Canvas)
    dom_tree: Optional[DomNode] = None
    assets_needed: List[Any] = Field(default_factory=list)


class ComponentSummary(BaseModel):
    """Flattened view of a DOM node, used by the critic and for patch targeting."""
    id: str
    type: str
    text: Optional[str] = None


# Physicist

class MotionPhysics(BaseModel):
    model_config = ConfigDict(extra="ignore")

    component_motions: List[Dict[str, Any]] = Field(default_factory=list)


# Architect

class ComponentStructure(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tree: List[Dict[str, Any]] = Field(default_factory=list)
    layout_strategy: str = "flex"

    @property
    def is_empty(self) -> bool:
        return not self.tree


# Builder / Live editor

class AppFile(BaseModel):
    path: str
    content: str


class LiveEditResult(BaseModel):
    updated_code: str
    success: bool
    error: Optional[str] = None


# Critic / healing

class Discrepancy(BaseModel):
    model_config = ConfigDict(extra="ignore")

    component_id: str = "unknown"
    issue: str = "Unknown issue"
    severity: Literal["minor", "moderate", "critical"] = "moderate"
    expected: str = ""
    actual: str = ""
    correction: Optional[Dict[str, Any]] = None

    def is_patchable(self, component_ids: List[str]) -> bool:
        """A discrepancy is patchable when it names a known component and carries an exact correction."""
        if self.component_id in GLOBAL_COMPONENT_IDS or self.component_id not in component_ids:
            return False
        return bool(self.correction) and any(self.correction.get(k) for k in ("style", "content", "bounds"))


class Critique(BaseModel):
    fidelity_score: float = 0
    overall_assessment: str = ""
    discrepancies: List[Discrepancy] = Field(default_factory=list)
    recommendation: Literal["accept", "refine", "regenerate"] = "regenerate"


class HealingResult(BaseModel):
    fidelity_score: float
    iterations: int
    stop_reason: Literal["threshold_met", "max_iterations", "error", "no_reference"]
    used_patching: bool = False


# Pipeline output

class PipelineResult(BaseModel):
    files: List[AppFile] = Field(default_factory=list)
    strategy: ExecutionStrategy
    manifests: List[VisualManifest] = Field(default_factory=list)
    physics: Optional[MotionPhysics] = None
    warnings: List[str] = Field(default_factory=list)
    step_timings: Dict[str, float] = Field(default_factory=dict)
    healing_result: Optional[HealingResult] = None
    command: Optional[Command] = None
    suspended_state: Optional[SuspendedState] = None

    @property
    def awaiting_remote_execution(self) -> bool:
        return self.command is not None


def default_entry_file(content: str) -> AppFile:
    return AppFile(path=DEFAULT_ENTRY_PATH, content=content)
