import asyncio

import pytest

from campusnet.models.device import DeviceCatalogEntry, DeviceType
from campusnet.models.request import RequestCreate, RequestType
from campusnet.models.requirements import (
    CampusRequirements,
    DepartmentRequirement,
    RoomRequirement,
)
from campusnet.models.user import Role, User
from campusnet.notifications import Notifier
from campusnet.reports import ReportRenderer
from campusnet.storage.catalog import DeviceCatalog
from campusnet.storage.memory import InMemoryRequestStore
from campusnet.workflow.service import WorkflowService

USERS = [
    User(id="admin-1", name="Ada Admin", role=Role.ADMIN),
    User(id="designer-1", name="Dana Designer", role=Role.DESIGNER),
    User(id="designer-2", name="Dev Designer", role=Role.DESIGNER),
    User(id="installer-1", name="Ira Installer", role=Role.INSTALLER),
    User(id="client-1", name="Campus Facilities", role=Role.CLIENT),
    User(id="client-2", name="Other Campus", role=Role.CLIENT),
]


class FakeRenderer(ReportRenderer):
    def __init__(self):
        self.rendered = []
        self.fail = False

    def render(self, request, design, designer):
        if self.fail:
            raise OSError("disk full")
        self.rendered.append(design.id)
        return f"/reports/DesignReport-{request.id}.md"


@pytest.fixture
def catalog_entries():
    return [
        DeviceCatalogEntry(id="rtr", model_name="Router A", type=DeviceType.ROUTER,
                           port_count=4, unit_price=1200.0),
        DeviceCatalogEntry(id="core", model_name="Core A", type=DeviceType.CORE_SWITCH,
                           port_count=48, unit_price=8500.0),
        DeviceCatalogEntry(id="dist", model_name="Dist A", type=DeviceType.DISTRIBUTION_SWITCH,
                           port_count=48, unit_price=2500.0),
        DeviceCatalogEntry(id="acc", model_name="Access A", type=DeviceType.ACCESS_SWITCH,
                           port_count=48, unit_price=1500.0),
        DeviceCatalogEntry(id="ap", model_name="AP A", type=DeviceType.ACCESS_POINT,
                           unit_price=500.0),
    ]


@pytest.fixture
def requirements():
    return CampusRequirements(
        campus_name="North Campus",
        departments=[
            DepartmentRequirement(name="Library", rooms=[
                RoomRequirement(name="Reading Room", wired_hosts=5),
            ]),
            DepartmentRequirement(name="Lab", rooms=[
                RoomRequirement(name="Lab 1", wireless_hosts=25),
                RoomRequirement(name="Lab 2", wireless_hosts=15),
            ]),
        ],
    )


@pytest.fixture
def store():
    store = InMemoryRequestStore()
    for user in USERS:
        asyncio.run(store.save_user(user))
    return store


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def service(store, catalog_entries, renderer):
    return WorkflowService(store, DeviceCatalog(catalog_entries), renderer, Notifier(store))


@pytest.fixture
def submit(service, requirements):
    """Submit a request as client-1 and return its id."""

    def _submit(request_type=RequestType.DESIGN_ONLY):
        body = RequestCreate(request_type=request_type, requirements=requirements)
        return asyncio.run(service.submit_request("client-1", body)).request.id

    return _submit
