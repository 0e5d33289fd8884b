"""Device catalog API routes."""

from fastapi import APIRouter, Depends

from ..dependencies import get_catalog, get_current_user, require_admin
from ..models.device import DeviceCatalogEntry, DeviceCreate
from ..models.user import Role, User
from ..storage.catalog import DeviceCatalog

router = APIRouter()


@router.get("/devices", response_model=list[DeviceCatalogEntry])
async def list_devices(
    include_inactive: bool = False,
    user: User = Depends(get_current_user),
    catalog: DeviceCatalog = Depends(get_catalog),
):
    """List catalog devices. Inactive entries are admin-only."""
    return catalog.list_devices(include_inactive=include_inactive and user.role == Role.ADMIN)


@router.get("/devices/{device_id}", response_model=DeviceCatalogEntry)
async def get_device(
    device_id: str,
    user: User = Depends(get_current_user),
    catalog: DeviceCatalog = Depends(get_catalog),
):
    return catalog.get_device(device_id)


@router.post("/devices", response_model=DeviceCatalogEntry, status_code=201)
async def add_device(
    body: DeviceCreate,
    admin: User = Depends(require_admin),
    catalog: DeviceCatalog = Depends(get_catalog),
):
    """Add a device to the catalog."""
    return catalog.add_device(body)


@router.post("/devices/{device_id}/deactivate", response_model=DeviceCatalogEntry)
async def deactivate_device(
    device_id: str,
    admin: User = Depends(require_admin),
    catalog: DeviceCatalog = Depends(get_catalog),
):
    """Hide a device from future designs."""
    return catalog.deactivate_device(device_id)
