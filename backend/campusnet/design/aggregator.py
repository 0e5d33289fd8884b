"""Host aggregation: room occupancy -> per-department totals."""

from __future__ import annotations

from collections.abc import Sequence

from ..models.requirements import DepartmentHostSummary, DepartmentRequirement


def aggregate_hosts(departments: Sequence[DepartmentRequirement]) -> list[DepartmentHostSummary]:
    """
    Sum wired and wireless hosts across each department's rooms.

    Department order is preserved. A department with no rooms yields an
    all-zero summary.
    """
    summaries: list[DepartmentHostSummary] = []

    for department in departments:
        wired = 0
        wireless = 0
        for room in department.rooms:
            wired += room.wired_hosts or 0
            wireless += room.wireless_hosts or 0

        summaries.append(DepartmentHostSummary(
            department_name=department.name,
            wired_hosts=wired,
            wireless_hosts=wireless,
        ))

    return summaries
