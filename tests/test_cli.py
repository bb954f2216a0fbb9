import asyncio

from conftest import FakeProvider
from multimode.api.cli import render_result, run_session
from multimode.core.result_types import CanvasPayload, ModeResult
from multimode.memory.chat_history import ChatHistory


class SessionProvider(FakeProvider):
    def __init__(self):
        super().__init__()
        self.closed = False

    def initialize(self):
        return None

    async def aclose(self):
        self.closed = True


def _run_session(monkeypatch, lines):
    replies = iter(lines)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))
    provider = SessionProvider()
    history = ChatHistory(None)
    asyncio.run(run_session(provider, history))
    return provider, history


def test_chat_only_result_prints_text():
    assert render_result(ModeResult(text="hello")) == "hello"


def test_code_canvas_is_printed_below_text():
    result = ModeResult(
        text="Prints one.",
        canvas=CanvasPayload("code", {
            "language": "python",
            "code": "print(1)",
            "description": "Generated Code",
        }),
    )

    rendered = render_result(result)

    assert rendered.startswith("Prints one.\n\n")
    assert rendered.endswith("[Generated Code] (python)\nprint(1)")


def test_writing_canvas_joins_sections():
    canvas = CanvasPayload("writing", {
        "title": "Guide: tides",
        "sections": [{"type": "paragraph", "content": "one"}, {"type": "paragraph", "content": "two"}],
    })

    assert render_result(ModeResult("done", canvas=canvas)).endswith("# Guide: tides\n\none\n\ntwo")


def test_image_canvas_lists_urls():
    canvas = CanvasPayload("image", {"images": [{
        "url": "https://image.pollinations.ai/prompt/cat",
        "width": 1024,
        "height": 1024,
        "placeholder": "\U0001F3A8",
        "provider": "pollinations",
    }]})

    rendered = render_result(ModeResult("img", canvas=canvas))

    assert rendered.endswith("\U0001F3A8 https://image.pollinations.ai/prompt/cat (1024x1024)")


def test_image_command_reply_uses_image_mode_icon(monkeypatch, capsys):
    provider, history = _run_session(monkeypatch, ["/image a cat", "exit"])

    output = capsys.readouterr().out
    assert "\n\U0001F3A8 ![a cat](https://im.runware.ai/image/cat.jpg)" in output
    assert [m.mode for m in history.get("cli")] == ["image", "image"]
    assert provider.closed


def test_session_ends_on_eof(monkeypatch, capsys):
    def no_more_input(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", no_more_input)
    provider = SessionProvider()

    asyncio.run(run_session(provider, ChatHistory(None)))

    assert "Session ended (EOF received)." in capsys.readouterr().out
    assert provider.closed
