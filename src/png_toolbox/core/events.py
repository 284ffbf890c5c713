"""EventBus — decoupled Observer for progress, log, and warning events."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[..., None]

# Events emitted by the bundled tools.
PROGRESS = "progress"
LOG = "log"
WARNING = "warning"


class EventBus:
    """Publish/subscribe bus between tools and their front-ends.

    Tools emit ``progress``, ``log`` and ``warning`` events (for example a
    chunk whose CRC does not match).  The CLI subscribes to echo them;
    tests subscribe to collect them.
    """

    def __init__(self) -> None:
        """Initialise an empty event bus."""
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Register *handler* for *event*.

        Args:
            event: The event name (e.g. ``"warning"``).
            handler: Callable invoked with the event's keyword arguments.
        """
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Remove a previously registered handler.

        Args:
            event: The event name.
            handler: The handler to remove.
        """
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            logger.warning("Handler %r was not subscribed to event %r", handler, event)

    def emit(self, event: str, **kwargs: Any) -> None:
        """Call every handler subscribed to *event*.

        A failing handler is logged and skipped; it never aborts the tool
        that emitted the event.

        Args:
            event: The event name to fire.
            **kwargs: Data passed to each handler.
        """
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(**kwargs)
            except Exception:
                logger.exception("Error in handler %r for event %r", handler, event)
