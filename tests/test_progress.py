import threading

from civitdl.core.progress import ProgressBoard


def test_advance_clamps_to_total():
    board = ProgressBoard()
    t = board.track("a", 10)
    assert t.advance(4) == 4
    assert t.advance(100) == 10
    assert board.snapshot() == {"a": (10, 10)}


def test_duplicate_labels_get_their_own_track():
    board = ProgressBoard()
    a = board.track("model.safetensors", 5)
    b = board.track("model.safetensors", 7)
    assert a.label == "model.safetensors"
    assert b.label == "model.safetensors (2)"
    a.advance(5)
    assert board.snapshot()["model.safetensors (2)"] == (0, 7)


def test_listener_gets_register_update_finish():
    board = ProgressBoard()
    seen = []
    board.subscribe(seen.append)
    t = board.track("x", 3)
    t.advance(2)
    t.finish()
    t.finish()
    assert [(e.downloaded, e.total, e.finished) for e in seen] == [(0, 3, False), (2, 3, False), (2, 3, True)]
    board.unsubscribe(seen.append)
    board.track("y", 1)
    assert len(seen) == 3


def test_concurrent_tracks_are_independent_and_monotonic():
    board = ProgressBoard()
    events = {"a": [], "b": []}
    lock = threading.Lock()

    def listen(ev):
        with lock:
            events[ev.label].append((ev.downloaded, ev.total))

    board.subscribe(listen)
    totals = {"a": 1000, "b": 777}
    tracks = {k: board.track(k, v) for k, v in totals.items()}

    def pump(track, step):
        for _ in range(200):
            track.advance(step)

    threads = [threading.Thread(target=pump, args=(tracks["a"], 7)),
               threading.Thread(target=pump, args=(tracks["b"], 3))]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    for label, evs in events.items():
        counts = [d for d, _ in evs]
        assert counts == sorted(counts)
        assert all(total == totals[label] for _, total in evs)
        assert max(counts) <= totals[label]
    assert board.snapshot() == {"a": (1000, 1000), "b": (600, 777)}
