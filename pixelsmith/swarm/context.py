"""
Run-scoped workflow context shared between swarm phases.
"""
import json
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field


class WorkflowContext(BaseModel):
    """
    Immutable, versioned context threaded through every phase of one swarm run.

    `memory` maps agent name -> latest output (QA tests are stored as `<name>_tests`).
    Every update returns a new context with `version` incremented; nothing is mutated in place.
    """
    model_config = ConfigDict(frozen=True)

    version: int = 0
    memory: Dict[str, str] = Field(default_factory=dict)
    logs: Tuple[str, ...] = ()
    files: Dict[str, str] = Field(default_factory=dict)

    def remember(self, name: str, text: str) -> "WorkflowContext":
        return self.model_copy(update={"memory": {**self.memory, name: text}, "version": self.version + 1})

    def log(self, message: str) -> "WorkflowContext":
        return self.model_copy(update={"logs": self.logs + (message,), "version": self.version + 1})

    def memory_json(self) -> str:
        return json.dumps(self.memory)
