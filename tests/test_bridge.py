"""Tests for the BrailleBridge display transport and display fan-out."""

from __future__ import annotations

from typing import Any

import pytest

from framework import bridge
from framework.bridge import BrailleBridgeDisplay
from framework.errors import TransportError
from framework.http_utils import join_url
from framework.services import FanoutDisplay
from tests.helpers import RecordingDisplay


class _FakePost:
    def __init__(self, reject: set[str] | None = None, status: int = 400) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.reject = reject or set()
        self.status = status

    def __call__(self, url: str, payload: dict[str, Any], timeout_sec: float = 5.0) -> dict[str, Any]:
        self.calls.append((url, payload))
        if set(payload) & self.reject:
            raise TransportError("rejected", url=url, status=self.status)
        return {}


def test_join_url() -> None:
    assert join_url("http://localhost:5000/", "/braille") == "http://localhost:5000/braille"


async def test_line_is_posted_and_blank_line_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakePost()
    monkeypatch.setattr(bridge, "post_json", fake)
    display = BrailleBridgeDisplay("http://bridge:5000")

    await display.send_line("m a a n")
    await display.send_line("    ")

    assert fake.calls == [
        ("http://bridge:5000/braille", {"text": "m a a n"}),
        ("http://bridge:5000/clear", {}),
    ]


async def test_rejected_payload_shape_falls_through_to_next_key(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakePost(reject={"text"})
    monkeypatch.setattr(bridge, "post_json", fake)

    await BrailleBridgeDisplay("http://bridge").send_line("vis")

    assert [payload for _, payload in fake.calls] == [{"text": "vis"}, {"value": "vis"}]


async def test_server_errors_are_not_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakePost(reject={"text"}, status=503)
    monkeypatch.setattr(bridge, "post_json", fake)

    with pytest.raises(TransportError):
        await BrailleBridgeDisplay("http://bridge").send_line("vis")
    assert len(fake.calls) == 1


async def test_fanout_reaches_every_transport_before_raising() -> None:
    broken, healthy = RecordingDisplay(), RecordingDisplay()
    broken.fail = True

    with pytest.raises(ConnectionError):
        await FanoutDisplay([broken, healthy]).send_line("kat")
    assert healthy.lines == ["kat"]
