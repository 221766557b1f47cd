"""
Swarm data model: agents, commands, suspension snapshots and task results.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pixelsmith.constants import (
    ROLE_ARCHITECT,
    ROLE_CODER,
    ROLE_DEBUGGER,
    ROLE_QA_ENGINEER,
    ROLE_RESEARCHER,
    ROLE_REVIEWER,
    COMMAND_SHELL,
    COMMAND_SCREENSHOT,
    COMMAND_BROWSER_LOG,
)

AgentRole = Literal[ROLE_RESEARCHER, ROLE_ARCHITECT, ROLE_QA_ENGINEER, ROLE_CODER, ROLE_DEBUGGER, ROLE_REVIEWER]
CommandType = Literal[COMMAND_SHELL, COMMAND_SCREENSHOT, COMMAND_BROWSER_LOG]


class FabricatedAgent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    role: AgentRole
    system_prompt: str
    capabilities: List[str] = Field(default_factory=list)
    temperature: float = 0.5


class AgentSwarm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    mission: str = ""
    agents: List[FabricatedAgent] = Field(default_factory=list)

    def agents_with_role(self, *roles: str) -> List[FabricatedAgent]:
        """Agents holding any of `roles`, in swarm order."""
        return [a for a in self.agents if a.role in roles]

    def find_agent(self, agent_id: str) -> Optional[FabricatedAgent]:
        return next((a for a in self.agents if a.id == agent_id), None)


class Command(BaseModel):
    """Request for out-of-process execution on the command channel."""
    id: str
    type: CommandType
    command: str = ""
    timeout: int = 30000


class AgentFeedback(BaseModel):
    """Result of a command, returned by the remote executor."""
    command_id: Optional[str] = None
    exit_code: int
    output: str = ""
    screenshot: Optional[str] = None


class SuspendedState(BaseModel):
    """Everything needed to resume a swarm in another process."""
    swarm: AgentSwarm
    agent_id: str
    command: Command
    memory: Dict[str, str] = Field(default_factory=dict)

    @property
    def swarm_id(self) -> str:
        return self.swarm.id


class SwarmStatus(str, Enum):
    RUNNING = "RUNNING"
    SUSPENDED = "SUSPENDED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class AgentTaskResult(BaseModel):
    """
    Outcome of a swarm run or of one agent step.

    Exactly one shape holds:
      success=True with output; success=False with error;
      success=False with command + suspended_state (suspension, not a failure).
    """
    success: bool
    output: str = ""
    error: Optional[str] = None
    retry_suggestion: Optional[str] = None
    command: Optional[Command] = None
    suspended_state: Optional[SuspendedState] = None
    artifacts: Optional[List[Dict[str, Any]]] = None
    reasoning_summary: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "AgentTaskResult":
        suspended = self.command is not None or self.suspended_state is not None
        if self.success and (self.error or suspended):
            raise ValueError("a successful result carries neither an error nor a command")
        if not self.success:
            if suspended and self.error:
                raise ValueError("a suspended result must not carry an error")
            if suspended and (self.command is None or self.suspended_state is None):
                raise ValueError("suspension requires both command and suspended_state")
            if not suspended and not self.error:
                raise ValueError("a failed result must carry an error")
        return self

    @property
    def status(self) -> SwarmStatus:
        if self.success:
            return SwarmStatus.SUCCEEDED
        if self.command is not None:
            return SwarmStatus.SUSPENDED
        return SwarmStatus.FAILED

    @classmethod
    def succeeded(cls, output: str, **kwargs) -> "AgentTaskResult":
        return cls(success=True, output=output, **kwargs)

    @classmethod
    def failed(cls, error: str, retry_suggestion: Optional[str] = None, output: str = "") -> "AgentTaskResult":
        return cls(success=False, output=output, error=error, retry_suggestion=retry_suggestion)

    @classmethod
    def suspended(cls, output: str, state: SuspendedState) -> "AgentTaskResult":
        return cls(success=False, output=output, command=state.command, suspended_state=state)


class AutonomyGoal(BaseModel):
    id: str
    description: str
    context: str = ""
    technical_constraints: List[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    title: str = ""
    link: str = ""
    snippet: str = ""
