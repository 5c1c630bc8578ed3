from taswira.services.task_poller import poll_task

from tests.conftest import no_sleep


def scripted(*statuses):
    """Status callable returning the given statuses in order (exceptions are raised)"""
    remaining = list(statuses)
    calls = []

    async def check():
        calls.append(1)
        item = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(item, Exception):
            raise item
        return item

    check.calls = calls
    return check


PENDING = {"state": "pending", "url": None, "error": None, "raw": {"successFlag": 0}}


async def test_polls_until_success():
    check = scripted(PENDING, PENDING, {"state": "success", "url": "https://cdn/v.mp4", "raw": {"successFlag": 1}})

    outcome = await poll_task(check, interval=5, max_attempts=10, sleep=no_sleep)

    assert outcome["state"] == "success"
    assert outcome["result_url"] == "https://cdn/v.mp4"
    assert outcome["attempts"] == 3
    assert outcome["raw"] == {"successFlag": 1}


async def test_stops_on_error_state():
    check = scripted(PENDING, {"state": "error", "error": "content policy", "raw": {}})

    outcome = await poll_task(check, interval=5, max_attempts=10, sleep=no_sleep)

    assert outcome["state"] == "error"
    assert outcome["error"] == "content policy"
    assert outcome["attempts"] == 2


async def test_times_out_after_attempt_budget():
    check = scripted(PENDING)
    sleeps = []

    async def record_sleep(seconds):
        sleeps.append(seconds)

    outcome = await poll_task(check, interval=2, max_attempts=4, sleep=record_sleep)

    assert outcome["state"] == "timeout"
    assert outcome["attempts"] == 4
    assert len(check.calls) == 4
    # no sleep after the last attempt
    assert sleeps == [2, 2, 2]


async def test_transient_check_failures_are_tolerated():
    check = scripted(RuntimeError("502"), PENDING, RuntimeError("502"), {"state": "success", "url": "u"})

    outcome = await poll_task(check, interval=1, max_attempts=10, max_consecutive_errors=2, sleep=no_sleep)

    assert outcome["state"] == "success"
    assert outcome["attempts"] == 4


async def test_consecutive_check_failures_end_polling():
    check = scripted(RuntimeError("down"))

    outcome = await poll_task(check, interval=1, max_attempts=10, max_consecutive_errors=3, sleep=no_sleep)

    assert outcome["state"] == "error"
    assert outcome["attempts"] == 3
    assert "down" in outcome["error"]
