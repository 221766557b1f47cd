"""
Pipeline Orchestration State : Defines the state structure for the workflow
"""

from typing import TypedDict, Optional, Dict, List

from pixelsmith.schemas import (
    AppFile,
    ComponentStructure,
    ExecutionStrategy,
    HealingResult,
    MotionPhysics,
    PipelineInput,
    VisualManifest,
)
from pixelsmith.swarm.schemas import Command, SuspendedState


class PipelineState(TypedDict):
    """Pixelsmith pipeline workflow state"""

    # Core inputs
    correlation_id: str
    input: PipelineInput

    # Wall-clock budget (monotonic seconds)
    started_at: float
    timeout_seconds: float

    # Stage artifacts
    strategy: Optional[ExecutionStrategy]
    manifests: List[VisualManifest]
    physics: Optional[MotionPhysics]
    assets: Dict[str, str]
    structure: Optional[ComponentStructure]
    files: List[AppFile]

    # Execution tracking
    warnings: List[str]
    step_timings: Dict[str, float]
    healing_result: Optional[HealingResult]

    # Remote command channel (autonomy path)
    command: Optional[Command]
    suspended_state: Optional[SuspendedState]
