"""Registry mapping activity descriptor ids to activity implementations."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from .activity import Activity

ActivityFactory = Callable[[], Activity]


def canonical_activity_key(activity_id: str | None, known_kinds: Mapping[str, object] | list[str]) -> str | None:
    """Return the known kind that the normalized id starts with, longest kind first."""
    normalized = str(activity_id or "").strip().lower()
    if not normalized:
        return None
    for kind in sorted(known_kinds, key=len, reverse=True):
        if normalized.startswith(kind):
            return kind
    return None


class ActivityRegistry:
    """Builds activity instances by kind and hands out one shared instance per kind."""

    def __init__(self, factories: Mapping[str, ActivityFactory] | None = None):
        self._factories: dict[str, ActivityFactory] = {}
        self._instances: dict[str, Activity] = {}
        for kind, factory in (factories or {}).items():
            self.register(kind, factory)

    def register(self, kind: str, factory: ActivityFactory) -> None:
        normalized = kind.strip().lower()
        if not normalized:
            raise ValueError("Activity kind must be non-empty.")
        self._factories[normalized] = factory
        self._instances.pop(normalized, None)

    def kinds(self) -> list[str]:
        return sorted(self._factories)

    def resolve_key(self, activity_id: str | None) -> str | None:
        return canonical_activity_key(activity_id, list(self._factories))

    def get(self, activity_id: str | None) -> tuple[str | None, Activity | None]:
        """Return the canonical key and the activity instance for a descriptor id."""
        key = self.resolve_key(activity_id)
        if key is None:
            return None, None
        if key not in self._instances:
            self._instances[key] = self._factories[key]()
        return key, self._instances[key]

    def instances(self) -> list[Activity]:
        return list(self._instances.values())


def default_registry() -> ActivityRegistry:
    """Registry with every activity kind shipped in this repository."""
    from letters.letters_activity import LettersActivity
    from pairletters.pairletters_activity import PairLettersActivity

    return ActivityRegistry(
        {
            PairLettersActivity.activity_kind: PairLettersActivity,
            LettersActivity.activity_kind: LettersActivity,
        }
    )
