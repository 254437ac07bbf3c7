import logging

from portfolio_tracker.realtime.subscription_bus import SubscriptionBus


async def test_publish_reaches_sync_and_async_subscribers():
    bus = SubscriptionBus()
    seen = []

    def sync_handler(views):
        seen.append(("sync", views))

    async def async_handler(views):
        seen.append(("async", views))

    bus.subscribe(sync_handler)
    bus.subscribe(async_handler)
    await bus.publish(["a", "b"])

    assert seen == [("sync", ["a", "b"]), ("async", ["a", "b"])]


async def test_each_subscriber_gets_its_own_list():
    bus = SubscriptionBus()
    received = []
    bus.subscribe(lambda views: (views.clear(), received.append(views)))
    bus.subscribe(received.append)

    await bus.publish(["x"])

    assert received[1] == ["x"]


async def test_unsubscribe_stops_delivery_and_is_idempotent():
    bus = SubscriptionBus()
    calls = []
    unsubscribe = bus.subscribe(calls.append)
    assert bus.count() == 1

    unsubscribe()
    unsubscribe()
    await bus.publish(["a"])

    assert calls == []
    assert bus.count() == 0


async def test_failing_subscriber_does_not_block_others(caplog):
    bus = SubscriptionBus()
    calls = []

    def broken(views):
        raise RuntimeError("subscriber bug")

    bus.subscribe(broken)
    bus.subscribe(calls.append)

    with caplog.at_level(logging.ERROR):
        await bus.publish(["a"])

    assert calls == [["a"]]
    assert "failed" in caplog.text


async def test_unsubscribe_during_publish():
    bus = SubscriptionBus()
    calls = []
    unsubscribe_second = None

    def first(views):
        calls.append("first")
        unsubscribe_second()

    bus.subscribe(first)
    unsubscribe_second = bus.subscribe(lambda views: calls.append("second"))

    await bus.publish([])
    await bus.publish([])

    assert calls == ["first", "second", "first"]
