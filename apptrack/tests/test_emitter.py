from apptrack.core.emitter import EventBus, RecordingEmitter, Topic


def test_publish_calls_subscribers_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe(Topic.TRACKING, lambda p: seen.append(("a", p)))
    bus.subscribe(Topic.TRACKING, lambda p: seen.append(("b", p)))
    assert bus.publish(Topic.TRACKING, 1) == 2
    assert seen == [("a", 1), ("b", 1)]


def test_topics_are_isolated():
    bus = EventBus()
    seen = []
    bus.subscribe(Topic.CRASH_REPORT, seen.append)
    bus.publish(Topic.TRACKING, "x")
    assert seen == []


def test_duplicate_subscribe_and_unsubscribe():
    bus = EventBus()
    seen = []
    bus.subscribe(Topic.TRACKING, seen.append)
    bus.subscribe(Topic.TRACKING, seen.append)
    bus.publish(Topic.TRACKING, 1)
    assert seen == [1]
    assert bus.unsubscribe(Topic.TRACKING, seen.append) is True
    assert bus.unsubscribe(Topic.TRACKING, seen.append) is False
    bus.publish(Topic.TRACKING, 2)
    assert seen == [1]


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    def boom(_):
        raise RuntimeError("subscriber bug")

    bus.subscribe(Topic.TRACKING, boom)
    bus.subscribe(Topic.TRACKING, seen.append)
    assert bus.publish(Topic.TRACKING, "ok") == 1
    assert seen == ["ok"]


def test_recent_history_is_bounded():
    bus = EventBus(history=3)
    for i in range(5):
        bus.publish(Topic.TRACKING if i % 2 else Topic.CRASH_REPORT, i)
    assert [p for _, p in bus.recent()] == [2, 3, 4]
    assert bus.recent(Topic.TRACKING) == [(Topic.TRACKING, 3)]
    assert bus.recent(limit=1) == [(Topic.CRASH_REPORT, 4)]


def test_recording_emitter():
    rec = RecordingEmitter()
    rec.publish(Topic.TRACKING, "a")
    rec.publish(Topic.CRASH_REPORT, "b")
    assert rec.payloads() == ["a", "b"]
    assert rec.payloads(Topic.CRASH_REPORT) == ["b"]
