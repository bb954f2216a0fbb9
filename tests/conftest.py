import asyncio
import json

import pytest

from multimode.image.types import GeneratedImage, PROVIDER_RUNWARE
from multimode.llm.provider_config import ProviderConfig


GEMINI_BASE = "https://gemini.test/v1beta"


def make_config(**overrides):
    values = {
        "gemini_keys": ("key-a", "key-b", "key-c"),
        "runware_key": "runware-key",
        "gemini_base_url": GEMINI_BASE,
        "default_model": "gemini-1.5-flash",
        "llm_timeout_seconds": 5.0,
        "runware_ws_url": "wss://runware.test/v1",
        "runware_model_id": "runware:100@1",
        "image_fallback_base_url": "https://image.pollinations.ai",
        "image_timeout_seconds": 0.05,
    }
    values.update(overrides)
    return ProviderConfig(**values)


class FakeSocket:
    """In-memory stand-in for a websockets client connection.

    `on_send(frame)` returns the raw messages the "server" answers with.
    """

    def __init__(self, on_send):
        self.on_send = on_send
        self.sent = []
        self.closed = False
        self.url = None
        self.connect_kwargs = {}
        self._inbox = asyncio.Queue()

    async def send(self, raw):
        frame = json.loads(raw)
        self.sent.append(frame)
        for reply in self.on_send(frame):
            self._inbox.put_nowait(reply)

    async def recv(self):
        return await self._inbox.get()

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
        return False


def connect_to(socket):
    def connect(url, **kwargs):
        socket.url = url
        socket.connect_kwargs = kwargs
        return socket
    return connect


class UnansweredCloseSocket(FakeSocket):
    """Server that never acknowledges the close frame.

    Closing waits out `close_timeout` like a websockets connection does; without
    one it waits the library default of 10 seconds.
    """

    async def close(self):
        close_timeout = self.connect_kwargs.get("close_timeout", 10.0)
        await asyncio.sleep(10.0 if close_timeout is None else close_timeout)
        self.closed = True


def runware_server(image_url="https://im.runware.ai/image/abc.jpg"):
    """Well-behaved Runware: ack authentication, then return one image."""

    def on_send(frame):
        task = frame[0]
        if task["taskType"] == "authentication":
            return [json.dumps({"data": [{"taskType": "authentication"}]})]
        if task["taskType"] == "imageInference":
            return [json.dumps({
                "data": [{
                    "taskType": "imageInference",
                    "taskUUID": task["taskUUID"],
                    "imageURL": image_url,
                }]
            })]
        return []

    return on_send


class FakeProvider:
    """Records calls; answers with canned text and one image."""

    def __init__(self, text="generated text", fail=False):
        self.text = text
        self.fail = fail
        self.text_calls = []
        self.image_calls = []

    async def generate_text(self, prompt, system_instruction=""):
        self.text_calls.append((prompt, system_instruction))
        if self.fail:
            raise RuntimeError("provider exploded")
        return self.text

    async def generate_image(self, prompt):
        self.image_calls.append(prompt)
        return [GeneratedImage(
            url="https://im.runware.ai/image/cat.jpg",
            width=1024,
            height=1792,
            provider=PROVIDER_RUNWARE,
        )]


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def fake_provider():
    return FakeProvider()
