"""
DecoExt - Cron Jobs

Periodic service methods backed by named alarms.

Each cron job owns one alarm, named ``"<Class>.<method>"`` unless a name is
given. Names are unique per category. The alarm is created through an
AlarmScheduler only if no alarm with that name exists yet, so restarting
the host does not reset running schedules.

Usage:
    cron = CronJobs(container, source, scheduler)

    @container.service
    class Cleanup:
        @cron.cron_job(period_in_minutes=60)
        async def purge(self) -> None:
            ...

    await cron.schedule()
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Type

from core.errors import DuplicateListenerError, InvalidListenerError
from di.container import Container
from dispatch.factory import ListenerHandler, ListenerMethod
from events.alarms import Alarm
from events.base import EventCategory
from events.source import EventSource

logger = logging.getLogger("decoext.events.cron")


def build_cron_job_name(owner: Any, method_name: Any) -> str:
    """
    Default cron job name for a method.

    Args:
        owner: The class (or an instance of it) defining the method
        method_name: The method's attribute name

    Raises:
        InvalidListenerError: If the method name is not a string or the
            owner has no usable class name
    """
    if not isinstance(method_name, str):
        raise InvalidListenerError(f"Method name must be a string, got {method_name!r}")

    class_name = owner.__name__ if isinstance(owner, type) else type(owner).__name__
    if not class_name:
        raise InvalidListenerError("Cron jobs must be defined on a named class")

    return f"{class_name}.{method_name}"


class AlarmScheduler(Protocol):
    """Creates and looks up named periodic alarms on the host."""

    async def get(self, name: str) -> Optional[Alarm]:
        ...

    async def create(self, name: str, period_in_minutes: float) -> None:
        ...


class InMemoryAlarmScheduler:
    """AlarmScheduler keeping alarms in a dict."""

    def __init__(self) -> None:
        self.alarms: Dict[str, Alarm] = {}

    async def get(self, name: str) -> Optional[Alarm]:
        return self.alarms.get(name)

    async def create(self, name: str, period_in_minutes: float) -> None:
        self.alarms[name] = Alarm(
            name=name,
            scheduled_time=time.time() + period_in_minutes * 60,
            period_in_minutes=period_in_minutes,
        )


async def create_cron_job(
    scheduler: AlarmScheduler,
    name: str,
    period_in_minutes: float,
) -> bool:
    """
    Create the alarm for a cron job unless one already exists.

    Returns:
        True if an alarm was created
    """
    existing = await scheduler.get(name)
    if existing is not None:
        return False
    await scheduler.create(name, period_in_minutes)
    logger.debug("Created cron alarm %s every %s minutes", name, period_in_minutes)
    return True


class CronJobs(EventCategory):
    namespace = "cron_job"

    def __init__(
        self,
        container: Container,
        source: EventSource,
        scheduler: Optional[AlarmScheduler] = None,
    ):
        super().__init__(container, source)
        self.scheduler: AlarmScheduler = scheduler or InMemoryAlarmScheduler()
        self.jobs: Dict[str, ListenerHandler] = {}
        self.periods: Dict[str, float] = {}
        self._unscheduled: List[str] = []
        self.cron_details = self.dispatcher.parameter_annotation

    def cron_job(
        self,
        period_in_minutes: float,
        name: Optional[str] = None,
    ) -> Callable[[Any], ListenerMethod]:
        """
        Run the decorated method every ``period_in_minutes``.

        Raises:
            InvalidListenerError: If the period is not positive
            DuplicateListenerError: If a job with the same name exists
        """
        if period_in_minutes <= 0:
            raise InvalidListenerError(
                f"Cron period must be positive, got {period_in_minutes}"
            )
        if name is not None:
            self._check_unique(name)
        self._ensure_subscribed()

        def register(handler: ListenerHandler) -> None:
            job_name = name or build_cron_job_name(handler.owner, handler.method_name)
            self._check_unique(job_name)
            self.jobs[job_name] = handler
            self.periods[job_name] = period_in_minutes
            self._unscheduled.append(job_name)

        return self.dispatcher.listener(register)

    def _check_unique(self, name: str) -> None:
        if name in self.jobs:
            raise DuplicateListenerError(
                f"Cron job with name '{name}' already exists. Name should be unique",
                listener_key=name,
            )

    def job_name(self, owner: Type, method_name: str) -> Optional[str]:
        """Name under which ``owner.method_name`` was registered, if any."""
        for name, handler in self.jobs.items():
            if handler.owner is owner and handler.method_name == method_name:
                return name
        return None

    async def schedule(self) -> List[str]:
        """
        Create alarms for every job registered since the last call.

        Returns:
            Names of the alarms actually created
        """
        pending, self._unscheduled = self._unscheduled, []
        created = []
        for name in pending:
            if await create_cron_job(self.scheduler, name, self.periods[name]):
                created.append(name)
        return created

    async def _on_event(self, alarm: Alarm) -> Any:
        handler = self.jobs.get(alarm.name)
        if handler is None:
            return None
        return await handler(alarm)
