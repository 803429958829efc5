"""Collection lifecycle hook registration and invocation.

Hooks are plain callables registered per event name. They run in
registration order, one after another, and any failure aborts the
surrounding collection operation.
"""

from __future__ import annotations

from typing import Callable, Literal, cast

from core.errors import LitheHookError

HookEvent = Literal[
    "before_insert",
    "after_insert",
    "before_update",
    "after_update",
    "before_upsert",
    "after_upsert",
    "before_remove",
    "after_remove",
]
SUPPORTED_HOOK_EVENTS: tuple[HookEvent, ...] = (
    "before_insert",
    "after_insert",
    "before_update",
    "after_update",
    "before_upsert",
    "after_upsert",
    "before_remove",
    "after_remove",
)
HookCallback = Callable[..., object]


class HookRegistry:
    """Ordered hook callbacks for one collection."""

    def __init__(self, collection: str) -> None:
        self._collection = collection
        self._callbacks: dict[HookEvent, list[HookCallback]] = {
            event: [] for event in SUPPORTED_HOOK_EVENTS
        }

    def register(self, event: str, callback: HookCallback) -> None:
        """Append a callback for an event.

        Raises:
            LitheHookError: If the event is unknown or callback is not callable.
        """
        hook_event = _parse_event(event)
        if not callable(callback):
            raise LitheHookError(
                f"Hook for '{event}' on collection '{self._collection}' is not callable."
            )
        self._callbacks[hook_event].append(callback)

    def invoke(self, event: HookEvent, *args: object) -> None:
        """Run every callback for an event and wrap failures with context."""
        for callback in self._callbacks[event]:
            try:
                callback(*args)
            except Exception as error:
                raise LitheHookError(
                    f"Hook '{event}' on collection '{self._collection}' failed: {error}"
                ) from error


def _parse_event(event: str) -> HookEvent:
    if event in SUPPORTED_HOOK_EVENTS:
        return cast(HookEvent, event)
    raise LitheHookError(
        f"Unsupported hook event '{event}'. Use one of: {', '.join(SUPPORTED_HOOK_EVENTS)}."
    )
