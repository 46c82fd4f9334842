"""Compare consecutive health snapshots of a node."""

from collections.abc import Iterable

from node_problem_detector.models import HealthCheck, Verdict


def compare(previous: Iterable[HealthCheck], current: Iterable[HealthCheck]) -> Verdict:
    """Derive the aggregate verdict for ``current`` and whether it moved since ``previous``.

    A single failing check makes the node unhealthy. The state counts as
    changed only when a check type present in both snapshots changed its
    result; check types appearing for the first time do not count.
    """
    last_results = {check.type: check.result for check in previous}

    failing = set()
    state_changed = False
    for check in current:
        if check.unhealthy:
            failing.add(check.type)
        before = last_results.get(check.type)
        if before is not None and before != check.result:
            state_changed = True

    return Verdict(
        healthy=not failing,
        state_changed=state_changed,
        failing=frozenset(failing),
    )
