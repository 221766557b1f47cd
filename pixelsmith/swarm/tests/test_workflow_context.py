import json

import pytest
from pydantic import ValidationError

from pixelsmith.swarm.context import WorkflowContext
from pixelsmith.swarm.schemas import AgentTaskResult, SwarmStatus


def test_updates_return_new_versions():
    ctx = WorkflowContext()

    updated = ctx.remember("Coder", "code").log("done")

    assert ctx.memory == {} and ctx.logs == () and ctx.version == 0
    assert updated.memory == {"Coder": "code"}
    assert updated.logs == ("done",)
    assert updated.version == 2
    assert json.loads(updated.memory_json()) == {"Coder": "code"}


def test_task_result_shapes():
    assert AgentTaskResult.succeeded("x").status == SwarmStatus.SUCCEEDED
    assert AgentTaskResult.failed("boom").status == SwarmStatus.FAILED


def test_task_result_rejects_mixed_shapes():
    with pytest.raises(ValidationError):
        AgentTaskResult(success=True, output="x", error="boom")
    with pytest.raises(ValidationError):
        AgentTaskResult(success=False, output="")
