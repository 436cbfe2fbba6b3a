"""Base manager class for Life Points managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .. import const
from ..dispatcher import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..dispatcher import SignalDispatcher
    from ..repository import GameRepository, HabitRepository
    from ..store import LifePointsStore


class BaseManager(ABC):
    """Base class for all Life Points managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen)
    - Subscription cleanup via async_unload()
    - Persistence via _persist() after each unit of mutation

    Subclasses must implement:
    - async_setup(): Subscribe to events, initialize state
    """

    def __init__(
        self,
        store: LifePointsStore,
        habit_repo: HabitRepository,
        game_repo: GameRepository,
        dispatcher: SignalDispatcher,
        options: dict[str, Any],
        instance_id: str,
    ) -> None:
        """Initialize manager.

        Args:
            store: Storage document owner (used for async_save)
            habit_repo: Habits and completions
            game_repo: Attempts, game state and life points
            dispatcher: Signal hub shared by all managers of one instance
            options: Validated coordinator options
            instance_id: Scope for signal names
        """
        self.store = store
        self.habit_repo = habit_repo
        self.game_repo = game_repo
        self.dispatcher = dispatcher
        self.options = options
        self.instance_id = instance_id
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def starting_lives(self) -> int:
        """Configured lives for new attempts."""
        return int(
            self.options.get(const.CONF_STARTING_LIVES, const.DEFAULT_STARTING_LIVES)
        )

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to other managers and listeners.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_WEEK_SETTLED)
            **payload: Event data dict passed to listeners

        Example:
            self.emit(
                const.SIGNAL_WEEK_SETTLED,
                week_start="2026-01-12",
                xp_change=-10,
                new_lives=90,
            )
        """
        signal = get_event_signal(self.instance_id, suffix)
        const.LOGGER.debug(
            "Emitting event '%s' for instance %s with payload keys: %s",
            suffix,
            self.instance_id,
            list(payload.keys()),
        )
        self.dispatcher.send(signal, payload)

    def listen(self, suffix: str, callback: Callable[..., Any]) -> None:
        """Subscribe to instance-scoped event; removed again by async_unload().

        Args:
            suffix: Signal suffix constant to listen for
            callback: Function called when event fires (receives payload dict)
        """
        signal = get_event_signal(self.instance_id, suffix)
        self._unsubscribers.append(self.dispatcher.connect(signal, callback))
        const.LOGGER.debug(
            "Manager %s listening to event '%s' for instance %s",
            self.__class__.__name__,
            suffix,
            self.instance_id,
        )

    async def _persist(self) -> None:
        """Write the storage document."""
        await self.store.async_save()

    async def async_unload(self) -> None:
        """Remove every subscription made through listen()."""
        while self._unsubscribers:
            self._unsubscribers.pop()()

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (subscribe to events, initialize state).

        Called once during coordinator initialization.
        """
