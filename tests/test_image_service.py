import asyncio
import json
import time
from urllib.parse import urlparse

from conftest import (
    FakeSocket,
    UnansweredCloseSocket,
    connect_to,
    make_config,
    runware_server,
)
from multimode.image.service import generate_image
from multimode.image.types import PROVIDER_POLLINATIONS, PROVIDER_RUNWARE
from multimode.llm.client import ProviderClient


FALLBACK_HOST = "image.pollinations.ai"


def _run(prompt, on_send, **config_overrides):
    async def scenario():
        socket = FakeSocket(on_send)
        images = await generate_image(
            prompt,
            make_config(**config_overrides),
            connect=connect_to(socket),
        )
        return images, socket

    return asyncio.run(scenario())


def test_primary_provider_success():
    images, socket = _run("a vertical portrait of a cat", runware_server())

    assert len(images) == 1
    image = images[0]
    assert image.url == "https://im.runware.ai/image/abc.jpg"
    assert (image.width, image.height) == (1024, 1792)
    assert image.provider == PROVIDER_RUNWARE
    assert image.placeholder == "\U0001F3A8"
    assert socket.closed
    assert socket.url == "wss://runware.test/v1"


def test_frames_follow_authenticate_then_infer_protocol():
    _, socket = _run("a landscape wallpaper", runware_server())

    auth, inference = socket.sent
    assert auth == [{"taskType": "authentication", "apiKey": "runware-key"}]

    task = inference[0]
    assert task["taskType"] == "imageInference"
    assert task["positivePrompt"] == "a landscape wallpaper"
    assert (task["width"], task["height"]) == (1792, 1024)
    assert task["numberResults"] == 1
    assert task["modelId"] == "runware:100@1"
    assert task["steps"] == 20
    assert task["CFGScale"] == 7
    assert isinstance(task["seed"], int)
    assert task["taskUUID"]


def test_no_terminal_frame_falls_back_with_computed_dimensions():
    images, socket = _run("a vertical portrait of a cat", lambda frame: [])

    assert len(images) == 1
    assert urlparse(images[0].url).netloc == FALLBACK_HOST
    assert (images[0].width, images[0].height) == (1024, 1792)
    assert images[0].provider == PROVIDER_POLLINATIONS
    assert socket.closed


def test_stalled_server_falls_back_within_watchdog_budget():
    async def scenario():
        socket = UnansweredCloseSocket(lambda frame: [])
        started = time.monotonic()
        images = await generate_image(
            "a cat",
            make_config(image_timeout_seconds=0.2),
            connect=connect_to(socket),
        )
        return images, socket, time.monotonic() - started

    images, socket, elapsed = asyncio.run(scenario())

    assert images[0].provider == PROVIDER_POLLINATIONS
    assert elapsed < 2.0
    assert socket.connect_kwargs == {"close_timeout": 0}
    assert socket.closed


def test_error_frame_falls_back():
    def on_send(frame):
        return [json.dumps({"error": {"code": "invalidApiKey", "message": "bad key"}})]

    images, socket = _run("a cat", on_send)

    assert urlparse(images[0].url).netloc == FALLBACK_HOST
    assert (images[0].width, images[0].height) == (1024, 1024)
    assert len(socket.sent) == 1
    assert socket.closed


def test_error_after_authentication_falls_back():
    def on_send(frame):
        if frame[0]["taskType"] == "authentication":
            return [json.dumps({"data": [{"taskType": "authentication"}]})]
        return [json.dumps({"error": {"message": "inference failed"}})]

    images, _ = _run("a cat", on_send)

    assert images[0].provider == PROVIDER_POLLINATIONS


def test_undecodable_frames_are_skipped():
    server = runware_server()

    def on_send(frame):
        return ["not json at all"] + server(frame)

    images, _ = _run("a cat", on_send)

    assert images[0].provider == PROVIDER_RUNWARE


def test_connection_error_falls_back():
    def refuse(url, **kwargs):
        raise OSError("connection refused")

    images = asyncio.run(generate_image("a wide valley", make_config(), connect=refuse))

    assert len(images) == 1
    assert urlparse(images[0].url).netloc == FALLBACK_HOST
    assert (images[0].width, images[0].height) == (1792, 1024)


def test_missing_runware_key_goes_straight_to_fallback():
    def unreachable(url, **kwargs):
        raise AssertionError("should not connect")

    images = asyncio.run(
        generate_image("a cat", make_config(runware_key=None), connect=unreachable)
    )

    assert images[0].provider == PROVIDER_POLLINATIONS


def test_provider_client_delegates_image_generation():
    async def scenario():
        socket = FakeSocket(runware_server("https://im.runware.ai/image/xyz.png"))
        client = ProviderClient(make_config(), connect=connect_to(socket))
        return await client.generate_image("a cat")

    images = asyncio.run(scenario())

    assert [image.url for image in images] == ["https://im.runware.ai/image/xyz.png"]


def test_provider_client_fallback_never_fails_on_empty_prompt():
    client = ProviderClient(make_config())

    images = client.generate_image_fallback("", 1024, 1024)

    assert len(images) == 1
    assert urlparse(images[0].url).netloc == FALLBACK_HOST
