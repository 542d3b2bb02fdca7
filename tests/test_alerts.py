import asyncio

from sheetdiff.alerts import SOURCE_ERROR_ALERT, ErrorAlerter
from tests.fakes import BrokenNotifier, FakeClock, FakeNotifier


def test_errors_one_minute_apart_alert_once() -> None:
    clock = FakeClock()
    notifier = FakeNotifier()
    alerter = ErrorAlerter(notifier, window_s=600, clock=clock)

    async def scenario():
        await alerter.alert()
        clock.advance(60)
        await alerter.alert()

    asyncio.run(scenario())

    assert notifier.sent == [SOURCE_ERROR_ALERT]


def test_errors_eleven_minutes_apart_alert_twice() -> None:
    clock = FakeClock()
    notifier = FakeNotifier()
    alerter = ErrorAlerter(notifier, window_s=600, clock=clock)

    async def scenario():
        await alerter.alert()
        clock.advance(11 * 60)
        await alerter.alert()

    asyncio.run(scenario())

    assert notifier.sent == [SOURCE_ERROR_ALERT, SOURCE_ERROR_ALERT]


def test_window_must_be_exceeded() -> None:
    clock = FakeClock()
    alerter = ErrorAlerter(FakeNotifier(), window_s=600, clock=clock)
    alerter.last_alert_at = clock.now

    assert not alerter.should_alert(clock.now + 600)
    assert alerter.should_alert(clock.now + 600.5)


def test_failed_alert_is_swallowed_and_still_throttles() -> None:
    clock = FakeClock()
    notifier = FakeNotifier(fail_after=0)
    alerter = ErrorAlerter(notifier, window_s=600, clock=clock)

    async def scenario():
        first = await alerter.alert()
        clock.advance(30)
        second = await alerter.alert()
        return first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (True, False)
    assert notifier.attempts == 1
    assert alerter.last_alert_at == 1000.0


def test_unexpected_send_error_is_swallowed() -> None:
    notifier = BrokenNotifier(asyncio.TimeoutError())
    alerter = ErrorAlerter(notifier, window_s=600, clock=FakeClock())

    assert asyncio.run(alerter.alert()) is True
    assert notifier.attempts == 1
