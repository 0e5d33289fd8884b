"""Device catalog and bill-of-materials models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, computed_field


class DeviceType(str, Enum):
    ROUTER = "Router"
    CORE_SWITCH = "CoreSwitch"
    DISTRIBUTION_SWITCH = "DistributionSwitch"
    ACCESS_SWITCH = "AccessSwitch"
    ACCESS_POINT = "AccessPoint"


class DeviceCatalogEntry(BaseModel):
    """A purchasable device model from the catalog."""

    id: str
    model_name: str = ""
    type: DeviceType
    port_count: Optional[int] = None
    poe_capable: bool = False
    unit_price: float
    active: bool = True

    # Informational specifications
    max_throughput: str = "N/A"
    power_consumption: str = "N/A"
    description: Optional[str] = None


class DeviceCreate(BaseModel):
    """Schema for adding a device to the catalog."""

    model_name: str
    type: DeviceType
    port_count: Optional[int] = None
    poe_capable: bool = False
    unit_price: float
    max_throughput: str = "N/A"
    power_consumption: str = "N/A"
    description: Optional[str] = None


class BillOfMaterialsLine(BaseModel):
    """One device type used by a design and how many units it needs."""

    device_id: str
    device_type: DeviceType
    model_name: str = ""
    quantity: int
    unit_price: float

    @computed_field
    @property
    def total_cost(self) -> float:
        return self.quantity * self.unit_price
