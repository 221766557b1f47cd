"""
Best-effort decoding of free-text model output.

Model replies are expected to be JSON or code, fenced or not, often wrapped in
conversational text. Nothing in here raises on malformed input: JSON decoding
returns a tagged result that every caller must inspect.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Union

_FENCED_JSON = re.compile(r'```(?:json)?\s*(\{.*?\})\s*```', re.DOTALL)
_BARE_JSON = re.compile(r'\{.*\}', re.DOTALL)

_FENCED_CODE = re.compile(r'```(?:tsx?|jsx?|typescript|javascript|python|py)?\n(.*?)```', re.DOTALL)
_CODE_START = re.compile(
    r'^(import\s|export\s|\'use |"use |const\s|let\s|var\s|function\s|class\s|interface\s|'
    r'type\s|enum\s|async\s|declare\s|def\s|from\s|//\s*===|/\*)'
)
_CODE_END = re.compile(r'[;})>,{]$|^\s*//|^\s*/\*|^\s*\*|^export\s|^import\s')


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class Malformed:
    raw: str
    reason: str


DecodeResult = Union[Parsed, Malformed]


def decode_json(response: str) -> DecodeResult:
    """
    Decode a JSON object from a model response.

    Tries a fenced ```json block first, then the outermost {...} span, then the raw text.
    Only JSON objects count as Parsed.
    """
    if not response or not response.strip():
        return Malformed(raw=response or "", reason="empty response")

    fenced = _FENCED_JSON.search(response)
    if fenced:
        candidate = fenced.group(1)
    else:
        bare = _BARE_JSON.search(response)
        candidate = bare.group(0) if bare else response

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        return Malformed(raw=response, reason=f"invalid JSON: {e}")

    if not isinstance(value, dict):
        return Malformed(raw=response, reason=f"expected a JSON object, got {type(value).__name__}")
    return Parsed(value=value)


def extract_code(raw: str) -> str:
    """
    Strip conversational wrapping from model code output.

    1. Content of the first markdown fence
    2. Lines between the first code-looking line and the last code-looking line
    3. Raw text with stray fence markers removed
    """
    if not raw or not raw.strip():
        return ""

    fenced = _FENCED_CODE.search(raw)
    if fenced:
        return fenced.group(1).strip()

    lines = raw.split("\n")

    start = 0
    for i, line in enumerate(lines):
        if _CODE_START.match(line.lstrip()):
            start = i
            break

    end = len(lines) - 1
    while end > start:
        trimmed = lines[end].strip()
        if trimmed and _CODE_END.search(trimmed):
            break
        end -= 1

    if start > 0 or end < len(lines) - 1:
        return "\n".join(lines[start:end + 1]).strip()

    stripped = re.sub(r'^```\w*\n?', '', raw, flags=re.MULTILINE)
    stripped = re.sub(r'\n?```$', '', stripped, flags=re.MULTILINE)
    return stripped.strip()


def preview(text: str, limit: int = 200) -> str:
    """Short single-line preview of a response for log lines."""
    if not text:
        return ""
    flat = text.replace("\n", " ")
    return flat if len(flat) <= limit else f"{flat[:limit]}..."
