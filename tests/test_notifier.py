"""
Tests for the change notifier and its broadcast topic
"""
import asyncio
import os

from watchdog.events import FileClosedEvent, FileModifiedEvent, FileMovedEvent, FileOpenedEvent

from frc_overlay.core.notifier import ChangeNotifier, FieldChangeHandler
from frc_overlay.core.pubsub import Topic
from frc_overlay.models import FieldId


def test_topic_fans_out_to_every_subscriber():
    """publish() reaches all current subscribers"""
    async def scenario():
        topic = Topic()
        first, second = topic.subscribe(), topic.subscribe()
        delivered = topic.publish({"type": "file_changed"})
        return delivered, await first.get(timeout=1), await second.get(timeout=1)

    delivered, a, b = asyncio.run(scenario())
    assert delivered == 2
    assert a == b == {"type": "file_changed"}


def test_unsubscribed_gets_nothing():
    async def scenario():
        topic = Topic()
        keep, leave = topic.subscribe(), topic.subscribe()
        remaining = topic.unsubscribe(leave)
        topic.publish("ping")
        return remaining, await keep.get(timeout=1), await leave.get(timeout=0.05)

    remaining, kept, left = asyncio.run(scenario())
    assert remaining == 1
    assert kept == "ping"
    assert left is None


def test_publish_from_another_thread():
    """watchdog publishes from its own thread"""
    async def scenario():
        topic = Topic()
        subscription = topic.subscribe()
        await asyncio.to_thread(topic.publish, "from-thread")
        return await subscription.get(timeout=1)

    assert asyncio.run(scenario()) == "from-thread"


def test_slow_subscriber_keeps_newest():
    async def scenario():
        topic = Topic(queue_size=2)
        subscription = topic.subscribe()
        for i in range(5):
            topic.publish(i)
        await asyncio.sleep(0)
        return [await subscription.get(timeout=1), await subscription.get(timeout=1)]

    assert asyncio.run(scenario()) == [3, 4]


def test_handler_forwards_watched_files(tmp_path):
    """Modified/moved events on field files are forwarded with the field id"""
    seen = []
    handler = FieldChangeHandler(FieldId.FIELD2, str(tmp_path), lambda *args: seen.append(args))

    score = os.path.join(str(tmp_path), "Score_R.txt")
    handler.on_any_event(FileModifiedEvent(score))
    handler.on_any_event(FileMovedEvent(os.path.join(str(tmp_path), "Timer.tmp"), os.path.join(str(tmp_path), "Timer.txt")))

    assert seen == [
        (FieldId.FIELD2, "Score_R.txt", score),
        (FieldId.FIELD2, "Timer.txt", os.path.join(str(tmp_path), "Timer.txt")),
    ]


def test_handler_ignores_other_files_and_reads(tmp_path):
    """Unrelated names and open/close events (our own reads) are dropped"""
    seen = []
    handler = FieldChangeHandler(FieldId.FIELD1, str(tmp_path), lambda *args: seen.append(args))

    handler.on_any_event(FileModifiedEvent(os.path.join(str(tmp_path), "Auto_R.txt")))
    handler.on_any_event(FileOpenedEvent(os.path.join(str(tmp_path), "Score_R.txt")))
    handler.on_any_event(FileClosedEvent(os.path.join(str(tmp_path), "Score_R.txt")))
    assert seen == []


def test_broadcast_event_shape(tmp_path):
    async def scenario():
        notifier = ChangeNotifier()
        subscription = notifier.subscribe()
        notifier._broadcast(FieldId.FIELD1, "Score_B.txt", str(tmp_path / "Score_B.txt"))
        return await subscription.get(timeout=1)

    event = asyncio.run(scenario())
    assert event["type"] == "file_changed"
    assert event["field"] == "field1"
    assert event["fileName"] == "Score_B.txt"
    assert event["filePath"] == str(tmp_path / "Score_B.txt")
    assert isinstance(event["timestamp"], int)


def test_missing_path_does_not_block_other_field(tmp_path):
    """A path that cannot be watched is skipped, the other still watched"""
    notifier = ChangeNotifier()
    try:
        watched = notifier.start_watching({"field1": str(tmp_path / "missing"), "field2": str(tmp_path)})
        assert watched == {"field2": str(tmp_path)}
        assert notifier.watching
    finally:
        notifier.stop_watching()
    assert not notifier.watching
    assert notifier.paths == {}


def test_nothing_watchable():
    notifier = ChangeNotifier()
    assert notifier.start_watching({"field1": None, "field2": ""}) == {}
    assert not notifier.watching


def test_restart_replaces_previous_watch(tmp_path):
    one, two = tmp_path / "one", tmp_path / "two"
    one.mkdir()
    two.mkdir()
    notifier = ChangeNotifier()
    try:
        notifier.start_watching({"field1": str(one)})
        notifier.start_watching({"field1": str(two)})
        assert notifier.paths == {"field1": str(two)}
    finally:
        notifier.stop_watching()


def test_last_subscriber_leaving_stops_watching(tmp_path):
    async def scenario():
        notifier = ChangeNotifier()
        first, second = notifier.subscribe(), notifier.subscribe()
        notifier.start_watching({"field1": str(tmp_path)})
        notifier.unsubscribe(first)
        still_watching = notifier.watching
        notifier.unsubscribe(second)
        return still_watching, notifier.watching

    still_watching, after = asyncio.run(scenario())
    assert still_watching is True
    assert after is False
