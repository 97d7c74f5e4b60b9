"""Pytest fixtures for the runner test-suite."""

from __future__ import annotations

import pytest

from framework.records import Record, parse_records
from tests.helpers import SAMPLE_RECORDS, RecordingAudio, RecordingDisplay


@pytest.fixture
def records() -> list[Record]:
    return parse_records(SAMPLE_RECORDS)


@pytest.fixture
def audio() -> RecordingAudio:
    return RecordingAudio()


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()
