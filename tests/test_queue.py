import pytest

from saucefleet.core.queue import AdmissionQueue


def test_rejects_non_positive_throttle():
    with pytest.raises(ValueError, match="throttle"):
        AdmissionQueue(0)


def test_admit_is_fifo_and_bounded_by_throttle():
    queue = AdmissionQueue(2)
    queue.enqueue(["a", "b", "c", "d"])

    assert queue.admit() == ["a", "b"]
    assert queue.active == ["a", "b"]
    assert len(queue) == 2
    assert queue.admit() == []
    assert queue.free_slots == 0


def test_release_frees_exactly_one_slot():
    queue = AdmissionQueue(2)
    queue.enqueue(["a", "b", "c", "d"])
    queue.admit()

    assert queue.release("a")
    assert not queue.release("a")
    assert queue.admit() == ["c"]
    assert queue.active == ["b", "c"]


def test_clear_drops_pending_but_keeps_active():
    queue = AdmissionQueue(1)
    queue.enqueue(["a", "b"])
    queue.admit()

    queue.clear()

    assert len(queue) == 0
    assert queue.active == ["a"]
