import pytest

from roomserver.models import Player, Room
from roomserver.services.rooms import Broadcaster, LivenessMonitor


@pytest.fixture()
def monitor(tasks):
    return LivenessMonitor(interval=30, start_task=tasks.start, sleep=tasks.sleep)


def test_first_sweep_probes_and_marks_pending(monitor, make_conn):
    conn = make_conn()
    monitor.track(conn)
    assert monitor.sweep() == 0
    assert len(conn.pings) == 1
    assert monitor.is_pending(conn)
    assert not conn.terminated


def test_answered_probe_keeps_connection(monitor, make_conn):
    conn = make_conn()
    monitor.track(conn)
    monitor.sweep()
    conn.pings[0]()
    assert not monitor.is_pending(conn)
    monitor.sweep()
    assert not conn.terminated
    assert len(conn.pings) == 2


def test_unanswered_probe_terminates(monitor, make_conn):
    quiet, chatty = make_conn('quiet'), make_conn('chatty')
    monitor.track(quiet)
    monitor.track(chatty)
    monitor.sweep()
    monitor.mark_alive(chatty)
    assert monitor.sweep() == 1
    assert quiet.terminated
    assert not chatty.terminated
    assert len(monitor) == 1


def test_closed_connections_are_forgotten(monitor, make_conn):
    conn = make_conn()
    monitor.track(conn)
    conn.is_open = False
    monitor.sweep()
    assert len(monitor) == 0
    assert conn.pings == []


def test_mark_alive_ignores_untracked(monitor, make_conn):
    conn = make_conn()
    monitor.mark_alive(conn)
    assert len(monitor) == 0


def test_start_runs_sweeps_until_stopped(tasks, make_conn):
    conn = make_conn()
    monitor = None

    def sleep(seconds):
        tasks.slept.append(seconds)
        if len(tasks.slept) == 3:
            monitor.stop()

    monitor = LivenessMonitor(interval=30, start_task=tasks.start, sleep=sleep)
    monitor.track(conn)
    monitor.start()
    assert len(tasks.tasks) == 1
    tasks.run_all()
    assert tasks.slept == [30, 30, 30]
    # Two sweeps ran: probe, then timeout
    assert conn.terminated


def test_start_without_interval_is_disabled(tasks):
    monitor = LivenessMonitor(interval=0, start_task=tasks.start)
    monitor.start()
    assert tasks.tasks == []


def test_broadcast_skips_excluded_closed_and_failing(make_conn):
    room = Room(id='r')
    ok, excluded, closed = make_conn('ok'), make_conn('excluded'), make_conn('closed')
    broken = make_conn('broken', fail=True)
    closed.is_open = False
    for idx, conn in enumerate([broken, ok, excluded, closed]):
        room.players.append(Player(id=str(idx), name=conn.id, symbol='spectator', connection=conn))
    delivered = Broadcaster().broadcast(room, {'type': 'update'}, exclude=excluded)
    assert delivered == 1
    assert ok.sent == [{'type': 'update'}]
    assert excluded.sent == []
    assert closed.sent == []
