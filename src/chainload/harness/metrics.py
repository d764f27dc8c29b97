"""
Run metrics as a fold over call outcomes.

``fold`` is pure: the running report is a value threaded through the
loop, not shared mutable state, so the same ordered outcomes always
produce the same report.  Derived figures are computed once in
``finalize``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Iterable

from .outcomes import CallOutcome, Confirmed, EstimationFailed, Reverted, SubmissionFailed


@dataclass(frozen=True)
class RunReport:
    attempted: int = 0
    success_count: int = 0
    total_gas_used: int = 0
    reverted: int = 0
    submission_failed: int = 0
    estimation_failed: int = 0

    @classmethod
    def empty(cls) -> "RunReport":
        return cls()

    @property
    def failed_count(self) -> int:
        return self.reverted + self.submission_failed + self.estimation_failed


@dataclass(frozen=True)
class FinalReport:
    report: RunReport
    duration_seconds: float
    average_gas: int
    throughput: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self.report)
        data["failed_count"] = self.report.failed_count
        data["duration_seconds"] = round(self.duration_seconds, 3)
        data["average_gas"] = self.average_gas
        data["throughput"] = round(self.throughput, 2)
        return data


def fold(report: RunReport, outcome: CallOutcome) -> RunReport:
    report = replace(report, attempted=report.attempted + 1)
    if isinstance(outcome, Confirmed):
        return replace(
            report,
            success_count=report.success_count + 1,
            total_gas_used=report.total_gas_used + outcome.gas_used,
        )
    if isinstance(outcome, Reverted):
        return replace(report, reverted=report.reverted + 1)
    if isinstance(outcome, SubmissionFailed):
        return replace(report, submission_failed=report.submission_failed + 1)
    if isinstance(outcome, EstimationFailed):
        return replace(report, estimation_failed=report.estimation_failed + 1)
    raise TypeError(f"Unknown outcome: {outcome!r}")


def aggregate(outcomes: Iterable[CallOutcome]) -> RunReport:
    report = RunReport.empty()
    for outcome in outcomes:
        report = fold(report, outcome)
    return report


def finalize(report: RunReport, duration_seconds: float) -> FinalReport:
    """Derive average gas and calls per second.

    Both are zero when nothing confirmed.  Duration is wall clock from run
    start to end, pacing and confirmation waits included.
    """
    average_gas = report.total_gas_used // report.success_count if report.success_count else 0
    if report.success_count and duration_seconds > 0:
        throughput = report.success_count / duration_seconds
    else:
        throughput = 0.0
    return FinalReport(
        report=report,
        duration_seconds=duration_seconds,
        average_gas=average_gas,
        throughput=throughput,
    )


def format_report(final: FinalReport) -> list[str]:
    r = final.report
    lines = [
        "Test Results:",
        f"  Attempted:    {r.attempted}",
        f"  Success:      {r.success_count}/{r.attempted}",
        f"  TPS:          {final.throughput:.2f}",
        f"  Avg Gas Used: {final.average_gas}",
        f"  Duration:     {final.duration_seconds:.2f}s",
    ]
    if r.failed_count:
        lines.append(
            f"  Failed:       {r.failed_count} "
            f"(reverted {r.reverted}, submission {r.submission_failed}, "
            f"estimation {r.estimation_failed})"
        )
    return lines
