from systems.event_queue import Event, EventQueue, EventType


def test_post_only_enqueues_until_flush() -> None:
    queue = EventQueue()
    seen = []
    queue.subscribe(EventType.FILE_READ, seen.append)

    queue.post_immediate(EventType.FILE_READ, {"node_id": "a"})

    assert seen == []
    assert queue.pending_count == 1
    queue.flush()
    assert [e.payload["node_id"] for e in seen] == ["a"]
    assert queue.pending_count == 0


def test_events_posted_during_flush_are_delivered_after_queued_ones() -> None:
    queue = EventQueue()
    order = []

    def on_read(event: Event) -> None:
        order.append("read")
        queue.post_immediate(EventType.NODE_MODIFIED)

    queue.subscribe(EventType.FILE_READ, on_read)
    queue.subscribe(EventType.NODE_MODIFIED, lambda e: order.append("modified"))
    queue.subscribe(EventType.NODE_CONSUMED, lambda e: order.append("consumed"))

    queue.post_immediate(EventType.FILE_READ)
    queue.post_immediate(EventType.NODE_CONSUMED)
    queue.flush()

    assert order == ["read", "consumed", "modified"]


def test_raising_handler_does_not_stop_dispatch() -> None:
    queue = EventQueue()
    seen = []

    def broken(event: Event) -> None:
        raise RuntimeError("boom")

    queue.subscribe(EventType.SAVE_FAILED, broken)
    queue.subscribe(EventType.SAVE_FAILED, seen.append)

    queue.post_immediate(EventType.SAVE_FAILED)
    queue.flush()

    assert len(seen) == 1


def test_subscribe_is_idempotent_and_unsubscribe_all_removes_everywhere() -> None:
    queue = EventQueue()
    seen = []
    queue.subscribe(EventType.FILE_READ, seen.append)
    queue.subscribe(EventType.FILE_READ, seen.append)
    queue.subscribe(EventType.NODE_CONSUMED, seen.append)

    queue.post_immediate(EventType.FILE_READ)
    queue.flush()
    assert len(seen) == 1

    queue.unsubscribe_all(seen.append)
    queue.post_immediate(EventType.FILE_READ)
    queue.post_immediate(EventType.NODE_CONSUMED)
    queue.flush()
    assert len(seen) == 1
