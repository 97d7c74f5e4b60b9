"""Lesson records and activity descriptors loaded from the JSON record store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Self, Sequence

from .errors import RecordStoreError

_DESCRIPTOR_FIELDS = {"id", "caption", "instruction"}


def unique_letters(values: Any) -> tuple[str, ...]:
    """Return single lower-case letters in first-seen order, without duplicates."""
    if not isinstance(values, (list, tuple)):
        return ()
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        letter = str(value if value is not None else "").strip().lower()
        if len(letter) != 1 or letter in seen:
            continue
        seen.add(letter)
        out.append(letter)
    return tuple(out)


@dataclass(frozen=True)
class ActivityDescriptor:
    """Immutable description of one exercise within a record.

    ``options`` carries every field besides ``id``, ``caption`` and
    ``instruction`` untouched; only the activity implementation reads them.
    """

    id: str
    caption: str = ""
    instruction: str = ""
    options: Mapping[str, Any] = field(default_factory=dict)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Return the first option present under any of ``keys``."""
        for key in keys:
            if key in self.options:
                return self.options[key]
        return default

    def to_dict(self) -> dict[str, Any]:
        payload = dict(self.options)
        payload.update({"id": self.id, "caption": self.caption, "instruction": self.instruction})
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            id=str(data.get("id") or "").strip(),
            caption=str(data.get("caption") or "").strip(),
            instruction=str(data.get("instruction") or "").strip(),
            options={key: value for key, value in data.items() if key not in _DESCRIPTOR_FIELDS},
        )


@dataclass(frozen=True)
class Record:
    """A lesson unit: target word, letter pools and its ordered activities."""

    id: str
    word: str
    known_letters: frozenset[str] = frozenset()
    letters: tuple[str, ...] = ()
    activities: tuple[ActivityDescriptor, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "word": self.word,
            "knownLetters": sorted(self.known_letters),
            "letters": list(self.letters),
            "activities": [activity.to_dict() for activity in self.activities],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        letters = unique_letters(data.get("letters"))
        raw_activities = data.get("activities")
        activities: list[ActivityDescriptor] = []
        if isinstance(raw_activities, list) and raw_activities:
            for raw in raw_activities:
                if not isinstance(raw, Mapping):
                    continue
                descriptor = ActivityDescriptor.from_dict(raw)
                if descriptor.id:
                    activities.append(descriptor)
        elif letters:
            activities.append(ActivityDescriptor(id="letters", caption="Oefen letters"))

        return cls(
            id=str(data.get("id") if data.get("id") is not None else "").strip(),
            word=str(data.get("word") or ""),
            known_letters=frozenset(unique_letters(data.get("knownLetters"))),
            letters=letters,
            activities=tuple(activities),
        )


def parse_records(payload: Any) -> list[Record]:
    """Build records from an already-decoded JSON document."""
    if isinstance(payload, Mapping) and isinstance(payload.get("records"), list):
        payload = payload["records"]
    if not isinstance(payload, list):
        raise RecordStoreError("Record document must be a JSON array of records.")
    records: list[Record] = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, Mapping):
            raise RecordStoreError(f"Record #{index} is not an object.")
        records.append(Record.from_dict(raw))
    return records


def load_records(path: str | Path) -> list[Record]:
    """Read and parse the record document at ``path``."""
    record_path = Path(path)
    try:
        raw = json.loads(record_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise RecordStoreError(f"Record document not found: {record_path}") from exc
    except json.JSONDecodeError as exc:
        raise RecordStoreError(f"Record document {record_path} is not valid JSON: {exc}") from exc
    return parse_records(raw)


def record_summaries(records: Sequence[Record]) -> list[dict[str, Any]]:
    """Return compact record listings for UIs."""
    return [
        {
            "index": index,
            "id": record.id,
            "word": record.word,
            "activities": [
                {"index": activity_index, "id": activity.id, "caption": activity.caption}
                for activity_index, activity in enumerate(record.activities)
            ],
        }
        for index, record in enumerate(records)
    ]
