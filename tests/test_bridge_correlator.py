import asyncio

import pytest

from tabctl.bridge.correlator import RequestCorrelator
from tabctl.bridge.framing import FrameCodec
from tabctl.bridge.protocol import BrowserResponse
from tabctl.utils.exceptions import BrowserCommandError, NotConnectedError, RequestTimeoutError


def _correlator(timeout_s=1.0):
    frames: list[bytes] = []
    corr = RequestCorrelator(frames.append, timeout_s=timeout_s)
    corr.connected = True
    return corr, frames


def _sent(frames):
    codec = FrameCodec()
    out = []
    for frame in frames:
        out.extend(codec.feed(frame))
    return out


@pytest.mark.asyncio
async def test_send_without_browser_raises_not_connected():
    corr = RequestCorrelator(lambda _: None)
    with pytest.raises(NotConnectedError) as exc_info:
        await corr.send("listTabs")
    assert exc_info.value.message == "No browser connected"
    assert corr.pending_count == 0


@pytest.mark.asyncio
async def test_command_frame_carries_envelope_and_params():
    corr, frames = _correlator()
    task = asyncio.create_task(corr.send("moveTab", {"tabId": 5, "windowId": 2, "action": "spoofed"}))
    await asyncio.sleep(0)
    (frame,) = _sent(frames)
    assert frame["type"] == "command"
    assert frame["action"] == "moveTab"
    assert frame["tabId"] == 5
    assert frame["windowId"] == 2
    assert corr.has_pending(frame["requestId"])
    corr.resolve(BrowserResponse(request_id=frame["requestId"], data={"ok": True}))
    assert await task == {"ok": True}


@pytest.mark.asyncio
async def test_concurrent_requests_get_unique_ids_and_resolve_independently():
    corr, frames = _correlator()
    first = asyncio.create_task(corr.send("listTabs"))
    second = asyncio.create_task(corr.send("listWindows"))
    await asyncio.sleep(0)
    sent = _sent(frames)
    assert len({f["requestId"] for f in sent}) == 2
    by_action = {f["action"]: f["requestId"] for f in sent}
    corr.resolve(BrowserResponse(request_id=by_action["listWindows"], data=["w"]))
    corr.resolve(BrowserResponse(request_id=by_action["listTabs"], data=["t"]))
    assert await first == ["t"]
    assert await second == ["w"]
    assert corr.pending_count == 0


@pytest.mark.asyncio
async def test_error_response_raises_browser_error_with_message():
    corr, frames = _correlator()
    task = asyncio.create_task(corr.send("closeTab", {"tabId": 999}))
    await asyncio.sleep(0)
    (frame,) = _sent(frames)
    assert corr.resolve(BrowserResponse(request_id=frame["requestId"], error="No tab with id: 999")) is True
    with pytest.raises(BrowserCommandError) as exc_info:
        await task
    assert exc_info.value.message == "No tab with id: 999"
    assert exc_info.value.code == "BROWSER_ERROR"


@pytest.mark.asyncio
async def test_timeout_settles_once_and_late_response_is_dropped():
    corr, frames = _correlator(timeout_s=0.05)
    with pytest.raises(RequestTimeoutError) as exc_info:
        await corr.send("listTabs")
    assert exc_info.value.message == "Request timed out"
    assert corr.pending_count == 0

    (frame,) = _sent(frames)
    assert corr.resolve(BrowserResponse(request_id=frame["requestId"], data=[])) is False


@pytest.mark.asyncio
async def test_unknown_response_is_ignored():
    corr, _ = _correlator()
    assert corr.resolve(BrowserResponse(request_id="nope", data=1)) is False


@pytest.mark.asyncio
async def test_response_before_timeout_cancels_timer():
    corr, frames = _correlator(timeout_s=0.05)
    task = asyncio.create_task(corr.send("listTabs"))
    await asyncio.sleep(0)
    (frame,) = _sent(frames)
    corr.resolve(BrowserResponse(request_id=frame["requestId"], data=[1]))
    await asyncio.sleep(0.1)
    assert await task == [1]


@pytest.mark.asyncio
async def test_write_failure_leaves_nothing_pending():
    def _broken(_):
        raise BrokenPipeError("stdout closed")

    corr = RequestCorrelator(_broken)
    corr.connected = True
    with pytest.raises(BrokenPipeError):
        await corr.send("listTabs")
    assert corr.pending_count == 0
