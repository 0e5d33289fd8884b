"""
Hardware Sizing

Maps aggregated host counts onto a bill of materials using the first
active catalog entry of each device type.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from ..errors import CatalogIncompleteError
from ..models.device import BillOfMaterialsLine, DeviceCatalogEntry, DeviceType
from ..models.requirements import DepartmentHostSummary

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_SWITCH_PORTS = 48
HOSTS_PER_ACCESS_POINT = 30

REQUIRED_TYPES = (
    DeviceType.ROUTER,
    DeviceType.CORE_SWITCH,
    DeviceType.DISTRIBUTION_SWITCH,
    DeviceType.ACCESS_SWITCH,
    DeviceType.ACCESS_POINT,
)


def select_devices(catalog: Sequence[DeviceCatalogEntry]) -> dict[DeviceType, DeviceCatalogEntry]:
    """
    Pick one representative device per required type.

    Raises CatalogIncompleteError naming every type that is missing or
    whose selected entry is unusable.
    """
    if not catalog:
        raise CatalogIncompleteError({t.value: "catalog is empty" for t in REQUIRED_TYPES})

    selected: dict[DeviceType, DeviceCatalogEntry] = {}
    for entry in catalog:
        if entry.active and entry.type not in selected:
            selected[entry.type] = entry

    problems: dict[str, str] = {}
    for device_type in REQUIRED_TYPES:
        device = selected.get(device_type)
        if device is None:
            problems[device_type.value] = "no active device"
        elif not device.id:
            problems[device_type.value] = "selected device has no identifier"
        elif device.unit_price <= 0:
            problems[device_type.value] = f"device {device.id} has non-positive unit price"

    if problems:
        raise CatalogIncompleteError(problems)

    return selected


def _line(device: DeviceCatalogEntry, quantity: int) -> BillOfMaterialsLine:
    return BillOfMaterialsLine(
        device_id=device.id,
        device_type=device.type,
        model_name=device.model_name,
        quantity=quantity,
        unit_price=device.unit_price,
    )


def size_hardware(
    summaries: Sequence[DepartmentHostSummary],
    catalog: Sequence[DeviceCatalogEntry],
) -> list[BillOfMaterialsLine]:
    """Build the bill of materials for the given department totals."""
    devices = select_devices(catalog)

    total_wired = sum(s.wired_hosts for s in summaries)
    total_wireless = sum(s.wireless_hosts for s in summaries)

    lines = [
        _line(devices[DeviceType.ROUTER], 1),
        _line(devices[DeviceType.CORE_SWITCH], 1),
        _line(devices[DeviceType.DISTRIBUTION_SWITCH], max(len(summaries), 1)),
    ]

    if total_wired > 0:
        access_switch = devices[DeviceType.ACCESS_SWITCH]
        ports = access_switch.port_count or DEFAULT_ACCESS_SWITCH_PORTS
        if ports <= 0:
            ports = DEFAULT_ACCESS_SWITCH_PORTS
        lines.append(_line(access_switch, math.ceil(total_wired / ports)))

    if total_wireless > 0:
        lines.append(_line(
            devices[DeviceType.ACCESS_POINT],
            math.ceil(total_wireless / HOSTS_PER_ACCESS_POINT),
        ))

    logger.debug(
        "Sized hardware: %d wired, %d wireless hosts -> %d BOM lines",
        total_wired,
        total_wireless,
        len(lines),
    )
    return lines
