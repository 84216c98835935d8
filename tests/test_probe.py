"""ReadinessProbe and health check tests."""

import socket
from unittest.mock import patch

import pytest

from bootstrap import probe
from bootstrap.probe import DependencyTarget, ProbeResult, ReadinessProbe, all_of

from conftest import FakeRunner, fail, ok


TARGET = DependencyTarget("mariadb", "mariadb", 3306, "app_user", "app_pass")


def ready_after(n):
    calls = {"count": 0}

    def check(target):
        calls["count"] += 1
        return calls["count"] >= n

    return check, calls


class TestAwaitReady:
    def test_ready_on_third_poll(self, sleeper):
        check, calls = ready_after(3)
        result = ReadinessProbe(check, 1.0, 30, sleep=sleeper).await_ready(TARGET)
        assert result is ProbeResult.READY
        assert calls["count"] == 3
        assert sleeper.calls == [1.0, 1.0]

    @pytest.mark.parametrize("max_attempts", [1, 5, 30])
    def test_never_ready_polls_exactly_max_attempts(self, sleeper, max_attempts):
        check, calls = ready_after(10**6)
        result = ReadinessProbe(check, 2.0, max_attempts, sleep=sleeper).await_ready(TARGET)
        assert result is ProbeResult.TIMED_OUT
        assert calls["count"] == max_attempts
        assert len(sleeper.calls) == max_attempts - 1

    def test_thirty_attempts_two_seconds_is_about_a_minute(self, sleeper):
        check, _ = ready_after(10**6)
        ReadinessProbe(check, 2.0, 30, sleep=sleeper).await_ready(TARGET)
        assert 55 <= sleeper.total <= 60

    def test_arguments_override_defaults(self, sleeper):
        check, calls = ready_after(10**6)
        p = ReadinessProbe(check, 5.0, 30, sleep=sleeper)
        assert p.await_ready(TARGET, interval=0.5, max_attempts=3) is ProbeResult.TIMED_OUT
        assert calls["count"] == 3
        assert sleeper.calls == [0.5, 0.5]

    def test_raising_check_counts_as_not_ready(self, sleeper):
        def check(target):
            raise ConnectionRefusedError("nope")

        assert ReadinessProbe(check, 1.0, 4, sleep=sleeper).await_ready(TARGET) is ProbeResult.TIMED_OUT

    def test_initial_delay_slept_once(self, sleeper):
        check, _ = ready_after(2)
        ReadinessProbe(check, 2.0, 30, initial_delay=10.0, sleep=sleeper).await_ready(TARGET)
        assert sleeper.calls == [10.0, 2.0]

    def test_logs_attempt_numbers(self, sleeper, caplog):
        check, _ = ready_after(10**6)
        caplog.set_level("INFO")
        ReadinessProbe(check, 1.0, 2, sleep=sleeper).await_ready(TARGET)
        assert "attempt 1/2" in caplog.text
        assert "attempt 2/2" in caplog.text
        assert "mariadb (mariadb:3306)" in caplog.text


class TestChecks:
    def test_all_of_short_circuits(self):
        seen = []

        def first(t):
            seen.append("first")
            return False

        def second(t):
            seen.append("second")
            return True

        assert all_of(first, second)(TARGET) is False
        assert seen == ["first"]

    def test_all_of_passes_when_every_check_passes(self):
        assert all_of(lambda t: True, lambda t: True)(TARGET) is True

    def test_tcp_check_refused(self):
        with patch.object(socket, "create_connection", side_effect=OSError("refused")):
            assert probe.tcp_check(TARGET) is False

    def test_tcp_check_connects(self):
        with patch.object(socket, "create_connection") as conn:
            assert probe.tcp_check(TARGET) is True
        conn.assert_called_once_with(("mariadb", 3306), timeout=probe.TCP_TIMEOUT)

    def test_mysqladmin_ping_authenticated(self):
        runner = FakeRunner()
        with patch.object(probe, "run_capture", runner):
            assert probe.mysqladmin_ping(TARGET) is True
        args = runner.calls[0]["args"]
        assert args[:2] == ["mysqladmin", "ping"]
        assert "-hmariadb" in args
        assert "-uapp_user" in args
        assert "--password=app_pass" in args

    def test_mysqladmin_ping_unauthenticated_is_not_ready(self):
        runner = FakeRunner(respond=lambda a, i: fail(1, "Access denied for user"))
        with patch.object(probe, "run_capture", runner):
            assert probe.mysqladmin_ping(TARGET) is False

    def test_mysqladmin_ping_without_user(self):
        runner = FakeRunner(respond=lambda a, i: ok())
        local = DependencyTarget("mariadb", "localhost", 3306)
        with patch.object(probe, "run_capture", runner):
            assert probe.mysqladmin_ping(local) is True
        assert not any(a.startswith("-u") for a in runner.calls[0]["args"])
