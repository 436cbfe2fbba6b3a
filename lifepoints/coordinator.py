# File: coordinator.py
"""Composition root for Life Points.

LifePointsCoordinator validates options, owns the store, repositories and
signal dispatcher, and wires the managers together:

    AttemptManager      attempts, reset, history
    SettlementManager   weekly settlement and catch-up
    HabitManager        habits and today's completions
    ReportManager       weekly audit reports and chart series

Typical use:

    coordinator = LifePointsCoordinator({"storage_path": "lifepoints.json"})
    await coordinator.async_setup()          # load, repair, catch up
    await coordinator.habit_manager.complete_habit(habit_id)
    await coordinator.async_refresh()        # on every app foreground
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any
import uuid

import voluptuous as vol

from . import const
from .dispatcher import SignalDispatcher, get_event_signal
from .managers import (
    AttemptManager,
    HabitManager,
    ReportManager,
    SettlementManager,
    SettlementResult,
)
from .migration import migrate_orphaned_records
from .store import LifePointsStore, StoreGameRepository, StoreHabitRepository
from .utils.dt_utils import get_time_zone, set_default_timezone

if TYPE_CHECKING:
    from collections.abc import Callable

    from .managers import BaseManager


def _validate_time_zone(value: Any) -> str:
    """Validate an IANA time zone name.

    Raises:
        vol.Invalid: If the name is not a known time zone
    """
    name = str(value)
    if get_time_zone(name) is None:
        raise vol.Invalid(f"Unknown time zone: {name}")
    return name


OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_STARTING_LIVES, default=const.DEFAULT_STARTING_LIVES
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            const.CONF_TIME_ZONE, default=const.DEFAULT_TIME_ZONE_NAME
        ): _validate_time_zone,
        vol.Optional(const.CONF_STORAGE_PATH, default=None): vol.Any(None, str),
    }
)


class LifePointsCoordinator:
    """Wire store, repositories, dispatcher and managers for one game."""

    def __init__(
        self,
        options: dict[str, Any] | None = None,
        *,
        store: LifePointsStore | None = None,
        instance_id: str | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            options: Raw options, validated against OPTIONS_SCHEMA
            store: Pre-built store (defaults to one at options' storage_path)
            instance_id: Signal scope (random when omitted)

        Raises:
            vol.Invalid: If the options do not validate
        """
        self.options: dict[str, Any] = OPTIONS_SCHEMA(dict(options or {}))
        time_zone = get_time_zone(self.options[const.CONF_TIME_ZONE])
        if time_zone is not None:
            set_default_timezone(time_zone)

        self.instance_id = instance_id or uuid.uuid4().hex
        self.store = store or LifePointsStore(self.options[const.CONF_STORAGE_PATH])
        self.habit_repo = StoreHabitRepository(self.store)
        self.game_repo = StoreGameRepository(self.store)
        self.dispatcher = SignalDispatcher()

        shared = (
            self.store,
            self.habit_repo,
            self.game_repo,
            self.dispatcher,
            self.options,
            self.instance_id,
        )
        self.attempt_manager = AttemptManager(*shared)
        self.settlement_manager = SettlementManager(
            *shared, attempt_manager=self.attempt_manager
        )
        self.habit_manager = HabitManager(*shared)
        self.report_manager = ReportManager(*shared)

    @property
    def managers(self) -> list[BaseManager]:
        """All managers in setup order."""
        return [
            self.attempt_manager,
            self.settlement_manager,
            self.habit_manager,
            self.report_manager,
        ]

    @property
    def starting_lives(self) -> int:
        """Configured lives for new attempts."""
        return int(self.options[const.CONF_STARTING_LIVES])

    async def async_setup(self, today: date | None = None) -> list[SettlementResult]:
        """Load storage, repair records, set up managers and catch up.

        Returns:
            Weeks settled by the initial catch-up
        """
        await self.store.async_initialize()
        for manager in self.managers:
            await manager.async_setup()

        await migrate_orphaned_records(
            self.store,
            self.habit_repo,
            self.game_repo,
            self.starting_lives,
            today,
        )
        const.LOGGER.debug(
            "DEBUG: LifePointsCoordinator %s set up (storage: %s)",
            self.instance_id,
            self.store.storage_path,
        )
        return await self.async_refresh(today)

    async def async_refresh(self, today: date | None = None) -> list[SettlementResult]:
        """Settle every missed week (safe to call at any time)."""
        return await self.settlement_manager.process_all_missed_weeks(today)

    def connect(self, suffix: str, callback: Callable[..., Any]) -> Callable[[], None]:
        """Subscribe an external listener to one of this game's signals.

        Returns:
            Function that removes the subscription
        """
        return self.dispatcher.connect(
            get_event_signal(self.instance_id, suffix), callback
        )

    async def async_unload(self) -> None:
        """Remove manager subscriptions and wait for pending async listeners."""
        for manager in self.managers:
            await manager.async_unload()
        await self.dispatcher.async_wait_pending()
