import asyncio

import pytest

from conftest import FakeProvider
from multimode.modes import prompts
from multimode.modes.registry import ModeRegistry, UnknownModeError, parse_codex_response


EXPECTED_MODES = [
    "assistant", "codex", "thinking", "research", "deep-research", "math",
    "analyst", "creative", "writer", "image", "guided",
]


def _respond(registry, mode, message):
    return asyncio.run(registry.get_response(mode, message))


def test_modes_are_registered_in_display_order(fake_provider):
    registry = ModeRegistry(fake_provider)

    assert registry.keys() == EXPECTED_MODES
    metadata = registry.list_modes()[1]
    assert metadata == {
        "id": "codex",
        "name": "Codex",
        "icon": "\U0001F4BB",
        "color": "#10b981",
        "canvas_type": "code",
        "description": "Code generation and debugging",
    }


def test_unknown_mode_raises(fake_provider):
    registry = ModeRegistry(fake_provider)

    with pytest.raises(UnknownModeError) as excinfo:
        registry.get("telepathy")
    assert str(excinfo.value) == "Unknown mode: telepathy"


def test_assistant_is_chat_only(fake_provider):
    result = _respond(ModeRegistry(fake_provider), "assistant", "hello")

    assert result.to_dict() == {"text": "generated text", "type": "chat"}
    assert fake_provider.text_calls == [("hello", prompts.ASSISTANT_INSTRUCTION)]


def test_codex_parses_json_reply():
    provider = FakeProvider(
        text='Sure!\n{"code": "print(1)", "language": "python", "explanation": "Prints one."}'
    )

    result = _respond(ModeRegistry(provider), "codex", "print one")

    assert result.text == "Prints one."
    assert result.canvas.type == "code"
    assert result.canvas.content == {
        "language": "python",
        "code": "print(1)",
        "description": "Generated Code",
    }
    prompt, instruction = provider.text_calls[0]
    assert '"print one"' in prompt
    assert instruction == prompts.CODEX_INSTRUCTION


def test_codex_unparseable_reply_degrades_to_placeholder():
    result = _respond(ModeRegistry(FakeProvider(text="Error: Gemini API Error (429): quota.")),
                      "codex", "sort a list")

    assert result.text == "Error: Gemini API Error (429): quota."
    assert result.canvas.content["code"] == "// Error parsing code"
    assert result.canvas.content["language"] == "javascript"


def test_codex_reply_without_code_uses_raw_reply():
    raw = '{"explanation": "nothing to show"}'

    result = _respond(ModeRegistry(FakeProvider(text=raw)), "codex", "x")

    assert result.canvas.content["code"] == raw
    assert result.text == "nothing to show"


def test_parse_codex_response_handles_broken_json():
    parsed = parse_codex_response("{not: valid}")

    assert parsed["code"] == "// Error parsing code"
    assert parsed["explanation"] == "{not: valid}"


def test_thinking_uses_thinking_section(fake_provider):
    result = _respond(ModeRegistry(fake_provider), "thinking", "why is the sky blue")

    assert result.canvas.to_dict() == {
        "type": "writing",
        "content": {
            "title": "Thought Process",
            "sections": [{"type": "thinking", "content": "generated text"}],
        },
    }


def test_math_renders_as_math_code_canvas(fake_provider):
    result = _respond(ModeRegistry(fake_provider), "math", "2+2")

    assert result.canvas.content == {
        "language": "math",
        "code": "generated text",
        "description": "Step-by-Step Solution",
    }


@pytest.mark.parametrize("mode, title", [
    ("research", "Research: tides"),
    ("deep-research", "Deep Analysis: tides"),
    ("analyst", "Data Analysis: tides"),
    ("creative", "Creative Piece"),
    ("writer", "Draft: tides"),
    ("guided", "Guide: tides"),
])
def test_writing_modes_titles(fake_provider, mode, title):
    result = _respond(ModeRegistry(fake_provider), mode, "tides")

    assert result.canvas.type == "writing"
    assert result.canvas.content["title"] == title
    assert result.canvas.content["sections"] == [
        {"type": "paragraph", "content": "generated text"}
    ]


def test_image_mode_returns_markdown_and_gallery(fake_provider):
    result = _respond(ModeRegistry(fake_provider), "image", "a tall cat")

    assert fake_provider.image_calls == ["a tall cat"]
    assert result.text.startswith("![a tall cat](https://im.runware.ai/image/cat.jpg)")
    assert result.text.endswith("Generated with Runware (1024x1792)")
    assert result.canvas.type == "image"
    assert result.canvas.content["images"][0]["url"] == "https://im.runware.ai/image/cat.jpg"
    assert result.canvas.content["images"][0]["id"] == 1
