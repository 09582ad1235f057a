from sos_latch import SosLatch


def test_single_release_activates():
    latch = SosLatch()
    assert latch.register_edge(1.0)
    assert latch.active
    assert latch.pending_presses == 0


def test_edges_inside_debounce_window_are_dropped():
    latch = SosLatch()
    assert latch.register_edge(1.0)
    assert not latch.register_edge(1.1)
    assert not latch.register_edge(1.19)
    assert latch.active
    assert latch.pending_presses == 0


def test_window_is_measured_from_last_accepted_edge():
    latch = SosLatch()
    latch.register_edge(1.0)
    latch.register_edge(1.15)  # dropped
    assert latch.register_edge(1.25)
    assert latch.pending_presses == 1


def test_one_press_does_not_cancel():
    latch = SosLatch()
    latch.register_edge(0.0)
    latch.register_edge(1.0)
    assert latch.active


def test_two_presses_cancel():
    latch = SosLatch()
    latch.register_edge(0.0)
    latch.register_edge(1.0)
    latch.register_edge(2.0)
    assert not latch.active
    assert latch.pending_presses == 0


def test_flooding_button_is_rate_limited():
    latch = SosLatch()
    accepted = sum(latch.register_edge(i * 0.07) for i in range(15))  # ~1 s of edges every 70 ms
    assert accepted == 5


def test_reactivation_after_clear_starts_fresh():
    latch = SosLatch()
    for t in (0.0, 1.0, 2.0, 3.0):
        latch.register_edge(t)
    assert latch.active
    latch.register_edge(4.0)
    assert latch.active


def test_only_releases_count():
    # A held button produces no edge; the adapter reports the release only.
    latch = SosLatch()
    assert not latch.active
    latch.register_edge(5.0)
    assert latch.active
