import unittest

from sitewatch.checks.evaluator import evaluate
from sitewatch.checks.results import NETWORK_ERROR, TIMEOUT, ProbeOutcome
from sitewatch.models import Check


def _response(status: int, body: str = "", final_url: str = "http://example.local/") -> ProbeOutcome:
    return ProbeOutcome(
        ok=True,
        duration_ms=12,
        status=status,
        final_url=final_url,
        headers={"content-type": "text/plain", "content-length": str(len(body))},
        body=body,
    )


def _check(**kwargs) -> Check:
    return Check(name="home", url="http://example.local/", **kwargs)


class EvaluatorTests(unittest.TestCase):
    def test_no_expectations_accepts_any_status(self) -> None:
        for status in (200, 301, 404, 500, 503):
            with self.subTest(status=status):
                ev = evaluate(_check(), _response(status))
                self.assertTrue(ev.ok)
                self.assertEqual(ev.status, status)
                self.assertIsNone(ev.reason)

    def test_transport_failures_carry_error_kind(self) -> None:
        for kind in (TIMEOUT, NETWORK_ERROR):
            with self.subTest(kind=kind):
                ev = evaluate(_check(), ProbeOutcome.failure(kind, 1000, error="boom"))
                self.assertFalse(ev.ok)
                self.assertEqual(ev.reason, f"{kind}: boom")
                self.assertEqual(ev.status, 0)
                self.assertEqual(ev.final_url, "http://example.local/")
                self.assertEqual(ev.duration_ms, 1000)

    def test_transport_failure_without_detail_reports_bare_kind(self) -> None:
        ev = evaluate(_check(), ProbeOutcome.failure(TIMEOUT, 1000))

        self.assertEqual(ev.reason, TIMEOUT)

    def test_network_error_reason_keeps_exception_text(self) -> None:
        outcome = ProbeOutcome.failure(NETWORK_ERROR, 3, error="ConnectionError: connection refused")

        ev = evaluate(_check(), outcome)

        self.assertEqual(ev.reason, "NETWORK_ERROR: ConnectionError: connection refused")

    def test_expect_status_mismatch_names_both_codes(self) -> None:
        ev = evaluate(_check(expectStatus=200), _response(404))

        self.assertFalse(ev.ok)
        self.assertEqual(ev.status, 404)
        self.assertIn("404", ev.reason)
        self.assertIn("200", ev.reason)
        self.assertEqual(ev.reason, "HTTP 404 (expected 200)")

    def test_expect_status_match(self) -> None:
        self.assertTrue(evaluate(_check(expectStatus=204), _response(204)).ok)

    def test_expect_status_in(self) -> None:
        check = _check(expectStatusIn=[200, 204])

        self.assertTrue(evaluate(check, _response(204)).ok)
        ev = evaluate(check, _response(500))
        self.assertFalse(ev.ok)
        self.assertEqual(ev.reason, "HTTP 500 (expected one of: 200, 204)")

    def test_expect_status_lt_is_exclusive(self) -> None:
        check = _check(expectStatusLt=400)

        self.assertTrue(evaluate(check, _response(399)).ok)
        ev = evaluate(check, _response(400))
        self.assertFalse(ev.ok)
        self.assertEqual(ev.reason, "HTTP 400 (expected < 400)")

    def test_must_contain(self) -> None:
        check = _check(mustContain="ready")

        self.assertTrue(evaluate(check, _response(200, "service ready")).ok)
        ev = evaluate(check, _response(200, "service starting"))
        self.assertFalse(ev.ok)
        self.assertEqual(ev.reason, 'Body missing "ready"')
        self.assertEqual(ev.body, "service starting")

    def test_must_contain_is_case_sensitive(self) -> None:
        ev = evaluate(_check(mustContain="Ready"), _response(200, "service ready"))
        self.assertFalse(ev.ok)

    def test_failed_evaluation_keeps_response_details(self) -> None:
        ev = evaluate(
            _check(expectStatus=200),
            _response(503, "down", final_url="http://example.local/maintenance"),
        )

        self.assertEqual(ev.final_url, "http://example.local/maintenance")
        self.assertEqual(ev.headers["content-type"], "text/plain")
        self.assertEqual(ev.duration_ms, 12)


class CombinedExpectationTests(unittest.TestCase):
    def test_expect_status_checked_before_status_in(self) -> None:
        check = _check(expectStatus=200, expectStatusIn=[200, 301])

        ev = evaluate(check, _response(301))
        self.assertFalse(ev.ok)
        self.assertEqual(ev.reason, "HTTP 301 (expected 200)")

    def test_status_in_checked_before_lt(self) -> None:
        check = _check(expectStatusIn=[200, 204], expectStatusLt=300)

        self.assertEqual(
            evaluate(check, _response(500)).reason,
            "HTTP 500 (expected one of: 200, 204)",
        )
        # Passes the set, the bound is still applied afterwards.
        self.assertTrue(evaluate(check, _response(204)).ok)

    def test_both_set_and_lt_apply(self) -> None:
        check = _check(expectStatusIn=[200, 404], expectStatusLt=400)

        ev = evaluate(check, _response(404))
        self.assertFalse(ev.ok)
        self.assertEqual(ev.reason, "HTTP 404 (expected < 400)")

    def test_status_rule_reported_before_body_rule(self) -> None:
        check = _check(expectStatus=200, mustContain="ready")

        self.assertEqual(
            evaluate(check, _response(500, "starting")).reason,
            "HTTP 500 (expected 200)",
        )
        self.assertEqual(
            evaluate(check, _response(200, "starting")).reason,
            'Body missing "ready"',
        )
        self.assertTrue(evaluate(check, _response(200, "ready")).ok)


if __name__ == "__main__":
    unittest.main()
