"""Tests for the per-connection session buffers."""

from celestia.models.session import (
    CLOSE_TRY_AGAIN_LATER,
    CloseRequest,
    Session,
    SessionState,
)


def _drain(session: Session) -> list:
    items = []
    while not session.outbox.empty():
        items.append(session.outbox.get_nowait())
    return items


class TestInbox:
    def test_latest_input_wins(self):
        s = Session(client_id=1, name="a")
        for line in ("one", "two", "three"):
            s.push_input(line)
        assert s.take_latest_input() == "three"
        assert s.dropped_inputs == 2
        assert s.take_latest_input() is None


class TestOutbox:
    def test_deliver_drops_oldest_when_full(self):
        s = Session(client_id=1, name="a", outbox_size=2)
        for frame in ("f1", "f2", "f3"):
            s.deliver(frame)
        assert _drain(s) == ["f2", "f3"]
        assert s.dropped_frames == 1

    def test_close_replaces_pending_frames(self):
        s = Session(client_id=1, name="a")
        s.deliver("f1")
        s.close(SessionState.REJECTED, CLOSE_TRY_AGAIN_LATER)
        s.deliver("f2")
        assert s.state is SessionState.REJECTED
        assert _drain(s) == [CloseRequest(1013, "")]

    def test_close_twice_is_noop(self):
        s = Session(client_id=1, name="a")
        s.close(SessionState.EVICTED, 1000, "destroyed")
        s.close(SessionState.REJECTED, 1013)
        assert s.state is SessionState.EVICTED
        assert _drain(s) == [CloseRequest(1000, "destroyed")]


class TestState:
    def test_disconnect_from_admitted(self):
        s = Session(client_id=1, name="a", state=SessionState.ADMITTED)
        s.mark_disconnected()
        assert s.state is SessionState.DISCONNECTED
        assert s.is_closed

    def test_disconnect_keeps_server_close_state(self):
        s = Session(client_id=1, name="a")
        s.close(SessionState.REJECTED, CLOSE_TRY_AGAIN_LATER)
        s.mark_disconnected()
        assert s.state is SessionState.REJECTED
