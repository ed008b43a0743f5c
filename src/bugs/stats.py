"""Bug counts grouped by status and by severity."""

from collections import Counter
from collections.abc import Iterable

from src.bugs.models import Bug, BugStats, SeverityStats


def compute_stats(bugs: Iterable[Bug]) -> BugStats:
    """Count bugs per status and per severity. Each bug lands in exactly one bucket of each."""
    statuses: Counter[str] = Counter()
    severities: Counter[str] = Counter()
    total = 0
    for bug in bugs:
        total += 1
        statuses[bug.status] += 1
        severities[bug.severity] += 1

    return BugStats(
        total=total,
        open=statuses["open"],
        in_progress=statuses["in-progress"],
        resolved=statuses["resolved"],
        closed=statuses["closed"],
        severity_stats=SeverityStats(
            low=severities["low"],
            medium=severities["medium"],
            high=severities["high"],
            critical=severities["critical"],
        ),
    )
