"""Device catalog, seeded from a YAML file."""

from __future__ import annotations

import logging
import re
import threading
from typing import Any

from ..config import load_yaml_config
from ..errors import NotFoundError, PreconditionError
from ..models.device import DeviceCatalogEntry, DeviceCreate

logger = logging.getLogger(__name__)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class DeviceCatalog:
    """
    Ordered device catalog.

    Design generation only reads `list_active_devices()`; the order of
    entries decides which device represents each type.
    """

    def __init__(self, devices: list[DeviceCatalogEntry] | None = None):
        self._lock = threading.Lock()
        self._devices: list[DeviceCatalogEntry] = list(devices or [])

    @classmethod
    def from_yaml(cls, path: str) -> DeviceCatalog:
        data = load_yaml_config(path)
        devices = [DeviceCatalogEntry(**entry) for entry in data.get("devices", [])]
        logger.info("Loaded %d catalog devices from %s", len(devices), path)
        return cls(devices)

    @classmethod
    def from_dicts(cls, entries: list[dict[str, Any]]) -> DeviceCatalog:
        return cls([DeviceCatalogEntry(**entry) for entry in entries])

    def list_active_devices(self) -> list[DeviceCatalogEntry]:
        """Snapshot of active entries, in catalog order."""
        with self._lock:
            return [d for d in self._devices if d.active]

    def list_devices(self, include_inactive: bool = False) -> list[DeviceCatalogEntry]:
        with self._lock:
            if include_inactive:
                return list(self._devices)
            return [d for d in self._devices if d.active]

    def get_device(self, device_id: str) -> DeviceCatalogEntry:
        with self._lock:
            for device in self._devices:
                if device.id == device_id:
                    return device
        raise NotFoundError(f"Device '{device_id}' not found")

    def add_device(self, device: DeviceCreate) -> DeviceCatalogEntry:
        if device.unit_price <= 0:
            raise PreconditionError("Unit price must be positive")

        with self._lock:
            base = _slug(device.model_name) or "device"
            existing = {d.id for d in self._devices}
            device_id = base
            suffix = 2
            while device_id in existing:
                device_id = f"{base}-{suffix}"
                suffix += 1

            entry = DeviceCatalogEntry(id=device_id, **device.model_dump())
            self._devices.append(entry)

        logger.info("Added catalog device %s (%s)", entry.id, entry.type.value)
        return entry

    def deactivate_device(self, device_id: str) -> DeviceCatalogEntry:
        with self._lock:
            for index, device in enumerate(self._devices):
                if device.id == device_id:
                    updated = device.model_copy(update={"active": False})
                    self._devices[index] = updated
                    logger.info("Deactivated catalog device %s", device_id)
                    return updated
        raise NotFoundError(f"Device '{device_id}' not found")
