from __future__ import annotations

from datetime import UTC, datetime

import pytest

from protectionsync.domain.errors import TargetValidationError
from protectionsync.domain.model import (
    ApplyOutcome,
    OutcomeStatus,
    RateState,
    SyncReport,
    TargetRepository,
)


def test_target_repository_reports_missing_fields() -> None:
    target = TargetRepository(owner="octo-org", name="  ", default_branch=None)

    assert target.missing_fields == ("name", "default_branch")
    assert not target.is_valid
    with pytest.raises(TargetValidationError, match="missing name, default_branch") as exc:
        target.validate()
    assert exc.value.missing == ("name", "default_branch")


def test_target_repository_full_name() -> None:
    assert TargetRepository("octo-org", "api", "main").full_name == "octo-org/api"
    assert TargetRepository(None, None, "main").full_name == "?/?"


def test_valid_target_passes_validation() -> None:
    target = TargetRepository(owner="octo-org", name="api", default_branch="develop")

    target.validate()

    assert target.is_valid


def test_rate_state_consume_and_exhausted() -> None:
    state = RateState(limit=5000, remaining=1, reset_at=datetime(2026, 1, 1, tzinfo=UTC))

    consumed = state.consume()

    assert not state.exhausted
    assert consumed.remaining == 0
    assert consumed.exhausted
    assert consumed.reset_at == state.reset_at


def test_sync_report_partitions_outcomes() -> None:
    a = TargetRepository("octo-org", "a", "main")
    b = TargetRepository("octo-org", None, "main")
    c = TargetRepository("octo-org", "c", "main")
    d = TargetRepository("octo-org", "d", "main")
    report = SyncReport(
        outcomes=(
            ApplyOutcome.applied(a),
            ApplyOutcome.skipped_invalid(b, "missing name"),
            ApplyOutcome.failed(c, "forbidden"),
            ApplyOutcome.cancelled(d),
        ),
        concurrency=1,
    )

    assert [outcome.target for outcome in report.applied] == [a]
    assert [outcome.target for outcome in report.skipped] == [b]
    assert [outcome.target for outcome in report.failed] == [c]
    assert [outcome.target for outcome in report.cancelled] == [d]
    assert not report.succeeded
    assert report.rulesets == ()


def test_skipped_targets_do_not_fail_a_report() -> None:
    target = TargetRepository(None, "x", "main")
    report = SyncReport(
        outcomes=(ApplyOutcome.skipped_invalid(target, "missing owner"),),
        concurrency=1,
    )

    assert report.succeeded


def test_outcome_status_values() -> None:
    assert [status.value for status in OutcomeStatus] == [
        "applied",
        "skipped-invalid",
        "failed",
        "cancelled",
    ]
