import time
import unittest
from unittest.mock import Mock

from sitewatch.checks.results import NETWORK_ERROR, TIMEOUT, ProbeOutcome
from sitewatch.checks.retry import backoff_delay, run_with_retries
from sitewatch.models import Check


def _ok(status: int = 200) -> ProbeOutcome:
    return ProbeOutcome(ok=True, duration_ms=5, status=status, final_url="http://example.local/")


class RetryPolicyTests(unittest.TestCase):
    def test_zero_retries_means_single_attempt(self) -> None:
        probe_fn = Mock(return_value=ProbeOutcome.failure(NETWORK_ERROR, 3))
        sleep = Mock()

        ev = run_with_retries(Check(name="a", url="http://example.local/"), probe_fn, sleep)

        self.assertFalse(ev.ok)
        self.assertEqual(probe_fn.call_count, 1)
        sleep.assert_not_called()

    def test_always_failing_uses_all_attempts_with_linear_backoff(self) -> None:
        probe_fn = Mock(return_value=ProbeOutcome.failure(TIMEOUT, 1000))
        sleep = Mock()
        check = Check(name="a", url="http://example.local/", retries=2)

        ev = run_with_retries(check, probe_fn, sleep)

        self.assertEqual(probe_fn.call_count, 3)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [0.5, 1.0])
        self.assertEqual(ev.reason, TIMEOUT)

    def test_stops_on_first_success(self) -> None:
        probe_fn = Mock(side_effect=[ProbeOutcome.failure(NETWORK_ERROR, 2), _ok()])
        sleep = Mock()
        check = Check(name="a", url="http://example.local/", retries=5)

        ev = run_with_retries(check, probe_fn, sleep)

        self.assertTrue(ev.ok)
        self.assertEqual(probe_fn.call_count, 2)
        sleep.assert_called_once_with(0.5)

    def test_returns_last_attempt_result(self) -> None:
        probe_fn = Mock(side_effect=[_ok(500), _ok(502), _ok(503)])
        check = Check(name="a", url="http://example.local/", retries=2, expectStatus=200)

        ev = run_with_retries(check, probe_fn, Mock())

        self.assertEqual(ev.status, 503)
        self.assertEqual(ev.reason, "HTTP 503 (expected 200)")

    def test_probe_receives_check_parameters(self) -> None:
        probe_fn = Mock(return_value=_ok())
        check = Check(
            name="a",
            url="http://example.local/",
            method="head",
            timeoutSec=3,
            headers={"X-Probe": "1"},
        )

        run_with_retries(check, probe_fn, Mock())

        probe_fn.assert_called_once_with(
            "http://example.local/",
            method="HEAD",
            timeout_ms=3000,
            headers={"X-Probe": "1"},
        )

    def test_real_backoff_spacing_between_attempts(self) -> None:
        stamps: list[float] = []

        def probe_fn(*args, **kwargs):
            stamps.append(time.perf_counter())
            return ProbeOutcome.failure(NETWORK_ERROR, 0)

        run_with_retries(Check(name="a", url="http://example.local/", retries=2), probe_fn)

        self.assertEqual(len(stamps), 3)
        first_gap, second_gap = stamps[1] - stamps[0], stamps[2] - stamps[1]
        self.assertAlmostEqual(first_gap, 0.5, delta=0.25)
        self.assertAlmostEqual(second_gap, 1.0, delta=0.25)

    def test_backoff_delay_is_linear(self) -> None:
        self.assertEqual([backoff_delay(i) for i in (1, 2, 3)], [0.5, 1.0, 1.5])


if __name__ == "__main__":
    unittest.main()
