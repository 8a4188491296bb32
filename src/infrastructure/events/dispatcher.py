# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Derived-effects dispatcher.

After a domain service commits a state change it hands the matching
transition event to dispatch(). The dispatcher runs the event's handler
in a background task with its own database session and writes:

1. the activity-feed entry (committed on its own),
2. the in-app notifications (committed together),
3. the email mirror of those notifications (best-effort).

Nothing here can fail the request that produced the event: every error
is logged and counted, never raised. The primary write has already
been committed when dispatch() is called, so it is never rolled back.

Example:
    from src.infrastructure.events import get_dispatcher, SubmissionGraded

    get_dispatcher().dispatch(
        SubmissionGraded(school_id=..., actor_id=..., actor_name=..., ...)
    )
"""

import asyncio
import logging
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.infrastructure.database.models.base import new_id
from src.infrastructure.database.models.tenant.notification import Activity
from src.infrastructure.events.handlers import (
    HANDLERS,
    EffectHandler,
    EffectPlan,
    RecipientDirectory,
)
from src.infrastructure.events.types import TRANSITION_EVENTS, TransitionEvent
from src.infrastructure.notifications.service import NotificationService

logger = logging.getLogger(__name__)

SessionmakerProvider = Callable[[], async_sessionmaker[AsyncSession]]


class EffectDispatcher:
    """Runs derived effects for committed transitions.

    Construction fails if any transition event class has no handler, so
    a new event cannot ship without deciding its effects.

    Attributes:
        enabled: When False, dispatch() drops events (used by some tests).
        _tasks: In-flight background tasks.
    """

    def __init__(
        self,
        sessionmaker_provider: SessionmakerProvider,
        notifications: NotificationService,
        handlers: dict[type[TransitionEvent], EffectHandler] | None = None,
        enabled: bool = True,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            sessionmaker_provider: Returns the sessionmaker to open
                dispatcher-owned sessions with. Resolved per event so the
                dispatcher can be built before the database is initialized.
            notifications: Delivery service for in-app records and email.
            handlers: Handler table; defaults to HANDLERS.
            enabled: Whether dispatch() schedules work at all.

        Raises:
            ValueError: If the handler table misses an event class.
        """
        self._handlers = dict(handlers if handlers is not None else HANDLERS)
        missing = [cls.__name__ for cls in TRANSITION_EVENTS if cls not in self._handlers]
        if missing:
            raise ValueError(f"No effect handler registered for: {', '.join(missing)}")

        self._sessionmaker_provider = sessionmaker_provider
        self._notifications = notifications
        self.enabled = enabled
        self._tasks: set[asyncio.Task[bool]] = set()
        self._dispatched = 0
        self._succeeded = 0
        self._failed = 0
        logger.debug("EffectDispatcher initialized with %d handlers", len(self._handlers))

    def dispatch(self, event: TransitionEvent) -> None:
        """Schedule derived effects for a committed transition.

        Returns immediately; the work runs as a background task on the
        current event loop.

        Args:
            event: The transition that was just committed.
        """
        if not self.enabled:
            logger.debug("Dispatch disabled, dropping %s", event.event_type)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, dropping %s", event.event_type)
            return

        self._dispatched += 1
        task = loop.create_task(self.run(event), name=f"effects:{event.event_type}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run(self, event: TransitionEvent) -> bool:
        """Execute the effects of one event in the current task.

        Args:
            event: The transition to process.

        Returns:
            True if every write succeeded, False if anything failed.
        """
        handler = self._handlers[type(event)]

        try:
            sessionmaker = self._sessionmaker_provider()
            async with sessionmaker() as session:
                plan = await handler(event, RecipientDirectory(session, event.school_id))

                session.add(self._build_activity(event, plan))
                await session.commit()

                payloads = await self._notifications.stage_in_app(
                    session,
                    school_id=event.school_id,
                    notification_type=event.event_type,
                    actor_name=event.actor_name,
                    drafts=[(n.user_id, n.message, n.link) for n in plan.notifications],
                )
                await session.commit()

            await self._notifications.send_emails(payloads)

        except Exception as e:
            self._failed += 1
            logger.error(
                "Derived effects failed for %s (school %s): %s",
                event.event_type,
                event.school_id,
                str(e),
                exc_info=True,
            )
            return False

        self._succeeded += 1
        logger.debug(
            "Derived effects applied for %s: %d notifications",
            event.event_type,
            len(payloads),
        )
        return True

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight effects to finish.

        Called at shutdown and by tests before asserting on effects.

        Args:
            timeout: Maximum seconds to wait; pending tasks are left
                running when it expires.
        """
        while self._tasks:
            pending = list(self._tasks)
            done, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                logger.warning("Dispatcher drain timed out with %d tasks pending", len(not_done))
                return

    @staticmethod
    def _build_activity(event: TransitionEvent, plan: EffectPlan) -> Activity:
        """Turn the plan's activity draft into a row."""
        draft = plan.activity
        return Activity(
            id=new_id(),
            school_id=event.school_id,
            class_id=draft.class_id,
            actor_id=event.actor_id,
            actor_name=event.actor_name,
            target_user_id=draft.target_user_id,
            target_user_name=draft.target_user_name,
            activity_type=event.event_type,
            message=draft.message,
            link=draft.link,
            timestamp=event.occurred_at,
        )

    def get_stats(self) -> dict[str, Any]:
        """Get dispatcher statistics.

        Returns:
            Dictionary with dispatch counters.
        """
        return {
            "handlers": len(self._handlers),
            "dispatched": self._dispatched,
            "succeeded": self._succeeded,
            "failed": self._failed,
            "in_flight": len(self._tasks),
        }


# Singleton instance
_dispatcher: EffectDispatcher | None = None


def init_dispatcher(dispatcher: EffectDispatcher) -> EffectDispatcher:
    """Install the process-wide dispatcher.

    Args:
        dispatcher: Dispatcher to install.

    Returns:
        The installed dispatcher.
    """
    global _dispatcher
    _dispatcher = dispatcher
    return _dispatcher


def get_dispatcher() -> EffectDispatcher:
    """Get the singleton dispatcher, building a default one on first use.

    Returns:
        EffectDispatcher instance.
    """
    global _dispatcher
    if _dispatcher is None:
        from src.core.config import get_settings
        from src.infrastructure.database.connection import get_sessionmaker

        settings = get_settings()
        _dispatcher = EffectDispatcher(
            sessionmaker_provider=get_sessionmaker,
            notifications=NotificationService(
                settings.smtp, send_email=settings.dispatch.send_email
            ),
            enabled=settings.dispatch.enabled,
        )
    return _dispatcher


def reset_dispatcher() -> None:
    """Reset the dispatcher singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _dispatcher
    _dispatcher = None
