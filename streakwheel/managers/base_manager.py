"""Base manager class for StreakWheel managers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable


class BaseManager:
    """Base class for StreakWheel managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen), returning an unsubscribe callable

    Listeners run synchronously in registration order and receive the
    payload as a single dict argument. A listener that raises propagates
    to the caller of emit().
    """

    def __init__(self) -> None:
        """Initialize manager with an empty listener registry."""
        self._listeners: dict[str, list[Callable[[dict[str, Any]], Any]]] = {}

    def emit(self, event: str, **payload: Any) -> None:
        """Emit an event to every listener registered for it.

        Args:
            event: Event name constant (e.g., const.EVENT_STREAK_RESET)
            **payload: Event data passed to listeners as one dict

        Example:
            self.emit(
                const.EVENT_STREAK_RESET,
                habit_id=habit_id,
                previous_streak=12,
            )
        """
        const.LOGGER.debug(
            "Emitting event '%s' from %s with payload keys: %s",
            event,
            self.__class__.__name__,
            list(payload.keys()),
        )
        for callback in list(self._listeners.get(event, [])):
            callback(payload)

    def listen(
        self, event: str, callback: Callable[[dict[str, Any]], Any]
    ) -> Callable[[], None]:
        """Subscribe to an event.

        Returns:
            Callable that removes the subscription.

        Example:
            def _on_reward_won(payload: dict[str, Any]) -> None:
                reward_store.claim(payload["reward_id"])

            unsub = spin_manager.listen(const.EVENT_REWARD_WON, _on_reward_won)
        """
        self._listeners.setdefault(event, []).append(callback)
        const.LOGGER.debug(
            "Manager %s listening to event '%s'",
            self.__class__.__name__,
            event,
        )

        def _unsubscribe() -> None:
            callbacks = self._listeners.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe
