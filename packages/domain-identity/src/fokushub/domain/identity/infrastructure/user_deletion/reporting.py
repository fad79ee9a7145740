"""Report observers: turn a finished deletion report into operator-facing output.

The orchestrator only builds the report; what happens with it is decided
by the observers it was given. The default observer writes one structured
log line per run with the per-table tally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fokushub.domain.identity.infrastructure.user_deletion.results import DeletionPhase
from fokushub.infra.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from fokushub.domain.identity.infrastructure.user_deletion.results import DeletionReport

    ReportObserver = Callable[[DeletionReport], None]

logger = get_logger(__name__)


def summarize_steps(report: DeletionReport) -> dict[str, str]:
    """Map descriptor name to ``"deleted:<rows>"`` or ``"<status>:<reason>"``.

    The status of a failed step is ``failed``, or ``not_attempted`` for STRICT
    steps skipped after an earlier failure.
    """
    summary: dict[str, str] = {}
    for step in report.steps:
        if step.error is None:
            summary[step.name] = f"deleted:{step.rows_deleted}"
        else:
            status = "failed" if step.attempted else "not_attempted"
            summary[step.name] = f"{status}:{step.error.reason}"
    return summary


def log_deletion_report(report: DeletionReport) -> None:
    """Default observer: one structured summary line per deletion run."""
    fields = {
        "user_id": report.principal_id,
        "phase": str(report.phase),
        "policy": str(report.policy),
        "success_count": report.success_count,
        "error_count": report.failure_count,
        "rows_deleted": report.rows_deleted,
        "steps": summarize_steps(report),
    }
    if report.phase is DeletionPhase.FATAL_FAILURE:
        error = report.fatal_error
        logger.error(
            "user_deletion_failed",
            error_code=error.error_code if error is not None else None,
            reason=str(error) if error is not None else None,
            rolled_back=report.rolled_back,
            **fields,
        )
    elif report.failure_count:
        logger.warning("user_deletion_completed_with_errors", **fields)
    else:
        logger.info("user_deletion_completed", **fields)
