import json

import pytest
from unittest.mock import AsyncMock, patch

from pixelsmith.swarm.factory import SwarmFactory, parse_swarm


@pytest.fixture
def factory():
    """Fixture for creating a SwarmFactory instance with a mocked LLM client."""
    with patch("pixelsmith.swarm.factory.config.get_swarm_config", return_value={
        "model": "mock-model",
        "temperature": 0.4,
        "max_tokens": 256,
    }):
        with patch("pixelsmith.swarm.factory.LLMClient") as MockClient:
            f = SwarmFactory()
            f.llm_client = MockClient.return_value
            f.llm_client.invoke = AsyncMock()
            return f


@pytest.mark.asyncio
async def test_fabricate_swarm_parses_design(factory):
    factory.llm_client.invoke.return_value = json.dumps({
        "swarm_id": "swarm_canvas",
        "agents": [
            {"id": "a1", "name": "Researcher", "role": "RESEARCHER", "system_prompt": "Research.",
             "capabilities": ["google_search"], "temperature": 0.3},
            {"id": "a2", "name": "Coder", "role": "CODER", "system_prompt": "Code."},
        ],
    })

    swarm = await factory.fabricate_swarm("Build a canvas game", "React 18")

    assert swarm.id == "swarm_canvas"
    assert swarm.mission == "Build a canvas game"
    assert [a.role for a in swarm.agents] == ["RESEARCHER", "CODER"]
    assert swarm.agents[1].temperature == 0.5
    prompt = factory.llm_client.invoke.call_args.args[0]
    assert 'Mission: "Build a canvas game"' in prompt
    assert 'Context: "React 18"' in prompt


@pytest.mark.asyncio
async def test_fabricate_swarm_falls_back_on_malformed_reply(factory):
    factory.llm_client.invoke.return_value = "I would use three agents."

    swarm = await factory.fabricate_swarm("Build a canvas game")

    assert swarm.id.startswith("swarm_fallback_")
    assert len(swarm.agents) == 1
    assert swarm.agents[0].role == "CODER"
    assert "web_search" in swarm.agents[0].capabilities


@pytest.mark.asyncio
async def test_fabricate_swarm_falls_back_on_model_error(factory):
    factory.llm_client.invoke.side_effect = RuntimeError("503 unavailable")

    swarm = await factory.fabricate_swarm("Build a canvas game")

    assert swarm.agents[0].name == "General_Solver"


def test_parse_swarm_drops_invalid_agents():
    swarm = parse_swarm({"agents": [
        {"name": "Wizard", "role": "WIZARD", "system_prompt": "Magic."},
        {"name": "Coder", "role": "CODER", "system_prompt": "Code."},
        "not an agent",
    ]}, "mission")

    assert [a.name for a in swarm.agents] == ["Coder"]
    assert swarm.agents[0].id == "agent_2"
    assert swarm.id.startswith("swarm_")


def test_parse_swarm_without_agents():
    assert parse_swarm({"agents": []}, "mission") is None
