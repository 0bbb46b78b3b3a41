import signal

import pytest

from kilar.errors import PermissionOrUnresolvedError, UnkillableError
from kilar.process_killer_helpers.signal_escalation import stop_process
from tests.helpers.kilar_fakes import FakeProcessControl


def _stop(control, pid, escalate=True):
    stop_process(control, pid, graceful_timeout=3.0, force_kill_timeout=2.0, escalate=escalate, port=3000)


def test_graceful_exit_sends_only_sigterm():
    control = FakeProcessControl(alive={10})

    _stop(control, 10)

    assert control.calls == [("is_alive", 10), ("signal", 10, signal.SIGTERM), ("wait", 10, 3.0)]


def test_escalates_to_sigkill_after_graceful_timeout():
    control = FakeProcessControl(alive={10}, survives={10: {signal.SIGTERM}})

    _stop(control, 10)

    assert control.calls == [
        ("is_alive", 10),
        ("signal", 10, signal.SIGTERM),
        ("wait", 10, 3.0),
        ("signal", 10, signal.SIGKILL),
        ("wait", 10, 2.0),
    ]


def test_survivor_of_sigkill_is_unkillable():
    control = FakeProcessControl(alive={10}, survives={10: {signal.SIGTERM, signal.SIGKILL}})

    with pytest.raises(UnkillableError) as excinfo:
        _stop(control, 10)

    assert excinfo.value.escalated is True
    assert (excinfo.value.pid, excinfo.value.port) == (10, 3000)


def test_no_escalation_when_disabled():
    control = FakeProcessControl(alive={10}, survives={10: {signal.SIGTERM}})

    with pytest.raises(UnkillableError) as excinfo:
        _stop(control, 10, escalate=False)

    assert excinfo.value.escalated is False
    assert control.signals() == [(10, signal.SIGTERM)]


def test_already_exited_process_is_success_without_signals():
    control = FakeProcessControl(alive=set())

    _stop(control, 10)

    assert control.signals() == []


def test_process_exiting_between_check_and_signal_is_success():
    class RacingControl(FakeProcessControl):
        def send_signal(self, pid, sig):
            self.calls.append(("signal", pid, sig))
            return False

    control = RacingControl(alive={10})

    _stop(control, 10)

    assert [call[0] for call in control.calls] == ["is_alive", "signal"]


def test_permission_errors_propagate():
    control = FakeProcessControl(alive={1}, errors={1: PermissionOrUnresolvedError.access_denied(1)})

    with pytest.raises(PermissionOrUnresolvedError):
        _stop(control, 1)
