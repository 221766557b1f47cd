"""
Swarm factory: asks a model to design the agent team for a mission.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from pixelsmith.config import config
from pixelsmith.constants import CAPABILITY_WEB_SEARCH, ROLE_CODER
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.swarm.prompt import FACTORY_PROMPT, FALLBACK_AGENT_PROMPT
from pixelsmith.swarm.schemas import AgentSwarm, FabricatedAgent
from pixelsmith.utils.correlation import generate_prefixed_id
from pixelsmith.utils.decode import Malformed, decode_json, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "SwarmFactory")


class SwarmFactory:
    """Fabricates a swarm per mission; falls back to one generic coder when the design is unusable."""

    def __init__(self, model: str = None, temperature: float = None, max_tokens: int = None):
        cfg = config.get_swarm_config()
        self.model = model or cfg["model"]
        self.temperature = temperature if temperature is not None else cfg["temperature"]
        self.max_tokens = max_tokens or cfg["max_tokens"]

        self.llm_client = LLMClient(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        logger.debug(f"Initialised SwarmFactory with model={self.model}", correlation_id="INIT")

    async def fabricate_swarm(
        self,
        mission: str,
        context: str = "",
        correlation_id: Optional[str] = None
    ) -> AgentSwarm:
        try:
            raw_output = await self.llm_client.invoke(
                FACTORY_PROMPT.format(mission=mission, context=context),
                correlation_id=correlation_id
            )
        except Exception as e:
            logger.error(f"Swarm fabrication failed: {e}", correlation_id=correlation_id)
            return fallback_swarm(mission)

        decoded = decode_json(raw_output)
        if isinstance(decoded, Malformed):
            logger.warning(
                f"Swarm design unparseable ({decoded.reason}). Preview: {preview(decoded.raw)}",
                correlation_id=correlation_id
            )
            return fallback_swarm(mission)

        swarm = parse_swarm(decoded.value, mission)
        if swarm is None:
            logger.warning("Swarm design has no usable agents, using fallback", correlation_id=correlation_id)
            return fallback_swarm(mission)

        logger.info(
            f"Fabricated swarm {swarm.id}: {', '.join(f'{a.name}({a.role})' for a in swarm.agents)}",
            correlation_id=correlation_id
        )
        return swarm


def parse_swarm(data: Dict[str, Any], mission: str) -> Optional[AgentSwarm]:
    """Build a swarm from a raw design; agents with an unknown role or missing fields are dropped."""
    agents: List[FabricatedAgent] = []
    for i, raw in enumerate(data.get("agents") or []):
        if not isinstance(raw, dict):
            continue
        raw = {**raw, "id": raw.get("id") or f"agent_{i + 1}"}
        if not raw.get("temperature"):
            raw.pop("temperature", None)
        try:
            agents.append(FabricatedAgent.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"Dropping agent {raw.get('name')}: {e.error_count()} validation errors", correlation_id="SWARM")

    if not agents:
        return None
    return AgentSwarm(
        id=data.get("swarm_id") or generate_prefixed_id("swarm"),
        mission=data.get("mission") or mission,
        agents=agents,
    )


def fallback_swarm(mission: str) -> AgentSwarm:
    return AgentSwarm(
        id=generate_prefixed_id("swarm_fallback"),
        mission=mission,
        agents=[FabricatedAgent(
            id="agent_generic",
            name="General_Solver",
            role=ROLE_CODER,
            system_prompt=FALLBACK_AGENT_PROMPT,
            capabilities=["write_code", CAPABILITY_WEB_SEARCH],
            temperature=0.5,
        )],
    )
