"""Name-keyed catalog of registered actions.

The registry is an explicit value built once at startup and handed to the
orchestrator and CLI. Every listing is sorted by action name so that batch
execution order and listings are reproducible across runs.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable

from telenoise.actions.base import Action, Category
from telenoise.errors import ActionLookupError, DuplicateActionError

__all__ = ["ActionRegistry"]


def _by_name(actions: Iterable[Action]) -> list[Action]:
    return sorted(actions, key=lambda a: a.info().name)


class ActionRegistry:
    """Thread-safe action catalog.

    Registration is expected only at startup, but every read takes the
    same lock so lookups stay consistent even if one races a write.
    """

    def __init__(self, actions: Iterable[Action] = ()) -> None:
        """Initialize registry.

        Parameters
        ----------
        actions : Iterable[Action], optional
            Actions to register immediately.

        Raises
        ------
        DuplicateActionError
            If two of *actions* share a name.
        """
        self._lock = threading.RLock()
        self._actions: dict[str, Action] = {}
        for action in actions:
            self.register(action)

    def register(self, action: Action) -> None:
        """Add *action* to the catalog.

        Parameters
        ----------
        action : Action
            Action to register.

        Raises
        ------
        DuplicateActionError
            If an action with the same name is already registered.
        """
        name = action.info().name
        with self._lock:
            if name in self._actions:
                raise DuplicateActionError(f"duplicate registration for {name!r}", action=name)
            self._actions[name] = action

    def get(self, name: str) -> Action | None:
        """Return the action registered as *name*, or None."""
        with self._lock:
            return self._actions.get(name)

    def require(self, name: str) -> Action:
        """Return the action registered as *name*.

        Raises
        ------
        ActionLookupError
            If no such action exists.
        """
        action = self.get(name)
        if action is None:
            raise ActionLookupError(f"action {name!r} not found", action=name)
        return action

    def all(self) -> list[Action]:
        """Return every registered action, sorted by name."""
        with self._lock:
            return _by_name(self._actions.values())

    def by_category(self, category: Category | str) -> list[Action]:
        """Return actions in *category*, sorted by name."""
        with self._lock:
            return _by_name(a for a in self._actions.values() if a.info().category == category)

    def by_tag(self, tag: str) -> list[Action]:
        """Return actions carrying *tag*, sorted by name."""
        with self._lock:
            return _by_name(a for a in self._actions.values() if tag in a.info().tags)

    def category_counts(self) -> dict[Category, int]:
        """Return the number of registered actions per category."""
        with self._lock:
            return dict(Counter(a.info().category for a in self._actions.values()))

    def names(self) -> list[str]:
        """Return every registered name, sorted."""
        with self._lock:
            return sorted(self._actions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._actions
