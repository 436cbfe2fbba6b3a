"""Instance-scoped signal dispatcher for Life Points.

Managers announce state changes (week settled, game over, attempt started...)
through a SignalDispatcher owned by the coordinator. Listeners may be plain
callables or coroutine functions; coroutines are scheduled on the running
event loop and never block the sender.

Signal names are scoped per coordinator instance so two engines in one
process never see each other's events.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import inspect
from typing import Any

from . import const


def get_event_signal(instance_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name.

    Format: 'lifepoints_{instance_id}_{suffix}'

    Example:
        get_event_signal("abc123", "week_settled") → "lifepoints_abc123_week_settled"
    """
    return f"{const.DOMAIN}_{instance_id}_{suffix}"


class SignalDispatcher:
    """Minimal publish/subscribe hub keyed by signal name."""

    def __init__(self) -> None:
        """Initialize the dispatcher."""
        self._targets: dict[str, list[Callable[..., Any]]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def connect(
        self, signal: str, target: Callable[..., Any]
    ) -> Callable[[], None]:
        """Subscribe `target` to `signal`.

        Returns:
            Function that removes the subscription (safe to call twice)
        """
        self._targets.setdefault(signal, []).append(target)

        def async_remove_dispatcher() -> None:
            targets = self._targets.get(signal, [])
            if target in targets:
                targets.remove(target)
            if not targets:
                self._targets.pop(signal, None)

        return async_remove_dispatcher

    def send(self, signal: str, *args: Any) -> None:
        """Deliver `args` to every target connected to `signal`.

        A failing target is logged and does not stop delivery to the others.
        """
        for target in list(self._targets.get(signal, [])):
            if inspect.iscoroutinefunction(target):
                task = asyncio.get_running_loop().create_task(
                    self._async_run_target(signal, target, args)
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
                continue
            try:
                target(*args)
            except Exception:  # noqa: BLE001
                self._log_target_error(signal, target)

    async def _async_run_target(
        self, signal: str, target: Callable[..., Any], args: tuple[Any, ...]
    ) -> None:
        try:
            await target(*args)
        except Exception:  # noqa: BLE001
            self._log_target_error(signal, target)

    @staticmethod
    def _log_target_error(signal: str, target: Callable[..., Any]) -> None:
        const.LOGGER.exception(
            "ERROR: Error in dispatcher target %s for signal %s",
            getattr(target, "__name__", target),
            signal,
        )

    async def async_wait_pending(self) -> None:
        """Wait until every scheduled coroutine target has finished."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def has_listeners(self, signal: str) -> bool:
        """Return True when at least one target is connected."""
        return bool(self._targets.get(signal))
