"""
Tests for events/alarms.py - Alarm Events.
"""
from typing import Annotated

import pytest

from events.alarms import Alarm, AlarmEvents


@pytest.fixture
def alarms(container, source):
    return AlarmEvents(container, source)


class TestAlarmEvents:
    """Tests for AlarmEvents."""

    def test_subscribes_once(self, container, mock_source):
        alarms = AlarmEvents(container, mock_source)

        @container.service
        class Poller:
            @alarms.on_alarm(name="poll")
            def poll(self):
                pass

            @alarms.on_alarm()
            def any_alarm(self):
                pass

        mock_source.subscribe.assert_called_once()

    def test_no_subscription_before_first_decorator(self, container, mock_source):
        AlarmEvents(container, mock_source)

        mock_source.subscribe.assert_not_called()

    @pytest.mark.asyncio
    async def test_named_listener_only_fires_for_its_alarm(self, container, source, alarms):
        fired = []

        @container.service
        class Poller:
            @alarms.on_alarm(name="poll")
            def poll(self, alarm):
                fired.append(alarm.name)

        await source.emit(Alarm("other", 0.0))
        await source.emit(Alarm("poll", 0.0))

        assert fired == ["poll"]

    @pytest.mark.asyncio
    async def test_unnamed_listener_fires_for_every_alarm(self, container, source, alarms):
        fired = []

        @container.service
        class Watcher:
            @alarms.on_alarm()
            def watch(self, alarm):
                fired.append(alarm.name)

        await source.emit(Alarm("first", 0.0))
        await source.emit(Alarm("second", 0.0))

        assert fired == ["first", "second"]

    @pytest.mark.asyncio
    async def test_named_results_come_first(self, container, source, alarms):
        @container.service
        class Poller:
            @alarms.on_alarm()
            def watch(self):
                return "unnamed"

            @alarms.on_alarm(name="poll")
            def poll(self):
                return "named"

        results = await source.emit(Alarm("poll", 0.0))

        assert results == [["named", "unnamed"]]

    @pytest.mark.asyncio
    async def test_alarm_details_annotation(self, container, source, alarms):
        @container.service
        class Poller:
            @alarms.on_alarm(name="poll")
            def poll(
                self,
                when: Annotated[float, alarms.alarm_details("scheduled_time")],
                alarm: Annotated[Alarm, alarms.alarm_details()],
            ):
                return when, alarm.name

        results = await source.emit(Alarm("poll", 12.5))

        assert results == [[(12.5, "poll")]]
