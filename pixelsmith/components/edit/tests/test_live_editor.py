import pytest
from unittest.mock import AsyncMock, patch

from pixelsmith.components.edit.live_editor import LiveEditor

ORIGINAL = 'export default function App() {\n  return <h1 data-id="title" className="text-black">Hi</h1>;\n}'
UPDATED = 'export default function App() {\n  return <h1 data-id="title" className="text-blue-600">Hi</h1>;\n}'


@pytest.fixture
def editor():
    """Fixture for creating a LiveEditor instance with a mocked LLM client."""
    with patch("pixelsmith.components.edit.live_editor.config.get_live_editor_config", return_value={
        "model": "mock-model",
        "temperature": 0.2,
        "max_tokens": 256,
    }):
        with patch("pixelsmith.components.edit.live_editor.LLMClient") as MockClient:
            e = LiveEditor()
            e.llm_client = MockClient.return_value
            e.llm_client.invoke = AsyncMock()
            return e


@pytest.mark.asyncio
async def test_run_returns_updated_code(editor):
    editor.llm_client.invoke.return_value = f"```tsx\n{UPDATED}\n```"

    result = await editor.run(ORIGINAL, "title", "make it blue")

    assert result.success is True
    assert result.updated_code == UPDATED
    prompt = editor.llm_client.invoke.call_args.args[0]
    assert 'data-id="title"' in prompt
    assert '"make it blue"' in prompt


@pytest.mark.asyncio
async def test_run_keeps_original_code_on_model_failure(editor):
    editor.llm_client.invoke.side_effect = RuntimeError("service unavailable")

    result = await editor.run(ORIGINAL, "title", "make it blue")

    assert result.success is False
    assert result.updated_code == ORIGINAL
    assert "service unavailable" in result.error


@pytest.mark.asyncio
async def test_run_rejects_empty_reply(editor):
    editor.llm_client.invoke.return_value = ""

    result = await editor.run(ORIGINAL, "title", "make it blue")

    assert result.success is False
    assert result.updated_code == ORIGINAL


@pytest.mark.asyncio
async def test_run_rejects_empty_code(editor):
    result = await editor.run("", "title", "make it blue")

    assert result.success is False
    editor.llm_client.invoke.assert_not_awaited()
