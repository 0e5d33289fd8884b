import pytest

from campusnet.design.sizing import select_devices, size_hardware
from campusnet.errors import CatalogIncompleteError
from campusnet.models.device import DeviceCatalogEntry, DeviceType
from campusnet.models.requirements import DepartmentHostSummary


def _quantities(lines):
    return {line.device_type: line.quantity for line in lines}


def test_access_switches_round_up(catalog_entries):
    summaries = [DepartmentHostSummary(department_name="Admin", wired_hosts=100)]
    quantities = _quantities(size_hardware(summaries, catalog_entries))
    assert quantities[DeviceType.ACCESS_SWITCH] == 3
    assert DeviceType.ACCESS_POINT not in quantities


def test_one_distribution_switch_per_department(catalog_entries):
    summaries = [
        DepartmentHostSummary(department_name="A", wired_hosts=1),
        DepartmentHostSummary(department_name="B", wireless_hosts=31),
        DepartmentHostSummary(department_name="C"),
    ]
    quantities = _quantities(size_hardware(summaries, catalog_entries))
    assert quantities[DeviceType.ROUTER] == 1
    assert quantities[DeviceType.CORE_SWITCH] == 1
    assert quantities[DeviceType.DISTRIBUTION_SWITCH] == 3
    assert quantities[DeviceType.ACCESS_POINT] == 2


def test_line_cost_is_quantity_times_price(catalog_entries):
    summaries = [DepartmentHostSummary(department_name="A", wired_hosts=97)]
    [line] = [line for line in size_hardware(summaries, catalog_entries)
              if line.device_type == DeviceType.ACCESS_SWITCH]
    assert line.quantity == 3
    assert line.total_cost == pytest.approx(4500.0)


def test_missing_port_count_uses_default(catalog_entries):
    catalog = [e.model_copy(update={"port_count": None}) if e.id == "acc" else e
               for e in catalog_entries]
    summaries = [DepartmentHostSummary(department_name="A", wired_hosts=49)]
    assert _quantities(size_hardware(summaries, catalog))[DeviceType.ACCESS_SWITCH] == 2


def test_first_active_entry_wins(catalog_entries):
    cheaper = DeviceCatalogEntry(id="rtr-old", type=DeviceType.ROUTER, unit_price=10.0, active=False)
    other = DeviceCatalogEntry(id="rtr-2", type=DeviceType.ROUTER, unit_price=99.0)
    selected = select_devices([cheaper, *catalog_entries, other])
    assert selected[DeviceType.ROUTER].id == "rtr"


def test_missing_type_is_named(catalog_entries):
    catalog = [e for e in catalog_entries if e.type != DeviceType.ACCESS_POINT]
    with pytest.raises(CatalogIncompleteError) as exc:
        size_hardware([DepartmentHostSummary(department_name="A", wired_hosts=5)], catalog)
    assert exc.value.device_types == ["AccessPoint"]


def test_empty_catalog():
    with pytest.raises(CatalogIncompleteError) as exc:
        select_devices([])
    assert len(exc.value.device_types) == 5


def test_non_positive_price_is_rejected(catalog_entries):
    catalog = [e.model_copy(update={"unit_price": 0.0}) if e.id == "core" else e
               for e in catalog_entries]
    with pytest.raises(CatalogIncompleteError) as exc:
        select_devices(catalog)
    assert "CoreSwitch" in exc.value.device_types
