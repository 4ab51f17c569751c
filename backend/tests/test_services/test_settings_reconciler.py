"""Tests for SettingsReconciler normalization and job reconciliation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from php_notifier.domain.enums import EmailFrequency
from php_notifier.schemas import SettingsForm, SettingsRecord
from php_notifier.services.settings import (
    EMAIL_JOB_NAME,
    SettingsReconciler,
    sanitize_text_field,
)


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def reconciler(job_scheduler) -> SettingsReconciler:
    return SettingsReconciler(job_scheduler, clock=lambda: NOW)


def _record(frequency: str = "never", send_email: bool = False, warning_type: str = "notice") -> SettingsRecord:
    return SettingsRecord(warning_type=warning_type, send_email=send_email, email_frequency=frequency)


class TestNormalization:
    """Form input is coerced to safe defaults, never rejected."""

    @pytest.mark.parametrize("raw", [{}, {"email_frequency": "daily"}, {"send_email": None}])
    def test_missing_send_email_disables_email(self, reconciler, raw):
        assert reconciler.reconcile(_record(send_email=True), raw).send_email is False

    @pytest.mark.parametrize("value", ["1", "on", "yes", "0", " "])
    def test_non_empty_send_email_enables_email(self, reconciler, value):
        assert reconciler.reconcile(_record(), {"send_email": value}).send_email is True

    def test_empty_send_email_disables_email(self, reconciler):
        assert reconciler.reconcile(_record(send_email=True), {"send_email": ""}).send_email is False

    def test_missing_frequency_defaults_to_never(self, reconciler):
        result = reconciler.reconcile(_record("weekly"), {"send_email": "1"})
        assert result.email_frequency is EmailFrequency.NEVER

    @pytest.mark.parametrize("value", ["hourly", "", "<b></b>", "yearly", "daily; drop table"])
    def test_unknown_frequency_becomes_never(self, reconciler, value):
        assert reconciler.reconcile(_record(), {"email_frequency": value}).email_frequency is EmailFrequency.NEVER

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("  daily  ", EmailFrequency.DAILY),
            ("Daily", EmailFrequency.DAILY),
            ("<em>daily</em>", EmailFrequency.DAILY),
            ("WEEKLY\n", EmailFrequency.WEEKLY),
            ("Month%20ly", EmailFrequency.MONTHLY),
        ],
    )
    def test_frequency_is_sanitized(self, reconciler, value, expected):
        result = reconciler.reconcile(_record(), {"email_frequency": value})
        assert result.email_frequency is expected

    def test_warning_type_carried_over(self, reconciler):
        result = reconciler.reconcile(
            _record(warning_type="error"),
            {"warning_type": "notice", "email_frequency": "daily"},
        )
        assert result.warning_type == "error"

    def test_accepts_form_schema(self, reconciler):
        form = SettingsForm(send_email="1", email_frequency="monthly")
        result = reconciler.reconcile(_record(), form)
        assert result.send_email is True
        assert result.email_frequency is EmailFrequency.MONTHLY


class TestScheduling:
    """The email job follows the frequency only when it changes."""

    def test_never_to_never_makes_no_calls(self, reconciler, job_scheduler):
        result = reconciler.reconcile(_record("never"), {})
        assert result.email_frequency is EmailFrequency.NEVER
        assert job_scheduler.calls == []

    def test_never_to_daily_clears_then_schedules(self, reconciler, job_scheduler):
        result = reconciler.reconcile(_record("never"), {"email_frequency": "daily"})
        assert result.email_frequency is EmailFrequency.DAILY
        assert job_scheduler.calls == [
            ("clear", EMAIL_JOB_NAME),
            ("schedule", EMAIL_JOB_NAME, NOW, EmailFrequency.DAILY),
        ]

    def test_unchanged_frequency_makes_no_calls(self, reconciler, job_scheduler):
        previous = _record("weekly")
        result = reconciler.reconcile(previous, {"email_frequency": "weekly"})
        assert result.email_frequency is EmailFrequency.WEEKLY
        assert job_scheduler.calls == []

    def test_daily_to_never_only_clears(self, reconciler, job_scheduler):
        result = reconciler.reconcile(_record("daily"), {"email_frequency": "never"})
        assert result.email_frequency is EmailFrequency.NEVER
        assert job_scheduler.calls == [("clear", EMAIL_JOB_NAME)]

    def test_frequency_change_reschedules_at_new_cadence(self, reconciler, job_scheduler):
        reconciler.reconcile(_record("daily"), {"email_frequency": "monthly"})
        assert job_scheduler.calls[-1] == ("schedule", EMAIL_JOB_NAME, NOW, EmailFrequency.MONTHLY)
        assert job_scheduler.jobs == {EMAIL_JOB_NAME: EmailFrequency.MONTHLY}

    def test_send_email_toggle_alone_does_not_reschedule(self, reconciler, job_scheduler):
        reconciler.reconcile(_record("weekly", send_email=False), {"send_email": "1", "email_frequency": "weekly"})
        assert job_scheduler.calls == []

    def test_resubmitting_same_input_is_idempotent(self, reconciler, job_scheduler):
        raw = {"send_email": "1", "email_frequency": "weekly"}
        first = reconciler.reconcile(_record("never"), raw)
        calls_after_first = list(job_scheduler.calls)

        second = reconciler.reconcile(first, raw)

        assert second == first
        assert job_scheduler.calls == calls_after_first
        assert len(calls_after_first) == 2


class TestSanitizeTextField:
    def test_strips_tags_and_whitespace(self):
        assert sanitize_text_field("  <script>x</script>  daily\t\n") == "x daily"

    def test_strips_percent_octets(self):
        assert sanitize_text_field("dai%0Aly") == "daily"
