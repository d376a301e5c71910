"""
DecoExt - Event Categories

Event sources and the categories built on the dispatch factory.

Usage:
    from events import AlarmEvents, LocalEventSource

    source = LocalEventSource("alarms")
    alarms = AlarmEvents(container, source)
"""

from events.source import EventSource, LocalEventSource
from events.base import EventCategory
from events.alarms import Alarm, AlarmEvents
from events.cron import (
    AlarmScheduler,
    CronJobs,
    InMemoryAlarmScheduler,
    build_cron_job_name,
    create_cron_job,
)
from events.messaging import MessageEnvelope, MessageEvents, MessageSender
from events.storage import DEFAULT_KEY, StorageChange, StorageEvents
from events.runtime import InstallReason, InstalledDetails, RuntimeEvents
from events.commands import CommandEvents

__all__ = [
    # Sources
    "EventSource",
    "LocalEventSource",
    "EventCategory",
    # Alarms and cron
    "Alarm",
    "AlarmEvents",
    "AlarmScheduler",
    "CronJobs",
    "InMemoryAlarmScheduler",
    "build_cron_job_name",
    "create_cron_job",
    # Messaging
    "MessageEnvelope",
    "MessageEvents",
    "MessageSender",
    # Storage
    "DEFAULT_KEY",
    "StorageChange",
    "StorageEvents",
    # Runtime
    "InstallReason",
    "InstalledDetails",
    "RuntimeEvents",
    # Commands
    "CommandEvents",
]
