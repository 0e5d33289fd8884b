import asyncio

import pytest

from campusnet.errors import (
    AuthorizationError,
    CatalogIncompleteError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from campusnet.models.notification import NotificationType
from campusnet.models.request import RequestCreate, RequestStatus, RequestType
from campusnet.models.requirements import CampusRequirements, DepartmentRequirement
from campusnet.storage.catalog import DeviceCatalog


def run(coro):
    return asyncio.run(coro)


def _designed(service, submit, request_type=RequestType.DESIGN_ONLY):
    request_id = submit(request_type)
    run(service.assign("admin-1", request_id, designer_id="designer-1",
                       installer_id="installer-1" if request_type.needs_installation else None))
    run(service.generate_design("designer-1", request_id))
    return request_id


def _types(store, user_id):
    return [n.type for n in run(store.list_notifications(user_id))]


def test_submit_requires_client(service, requirements):
    body = RequestCreate(request_type=RequestType.DESIGN_ONLY, requirements=requirements)
    with pytest.raises(AuthorizationError):
        run(service.submit_request("designer-1", body))


def test_submit_validates_requirements(service):
    body = RequestCreate(
        request_type=RequestType.DESIGN_ONLY,
        requirements=CampusRequirements(campus_name="X", departments=[]),
    )
    with pytest.raises(ValidationError):
        run(service.submit_request("client-1", body))
    assert run(service.store.list_requests()) == []


def test_unknown_actor(service, submit):
    request_id = submit()
    with pytest.raises(AuthorizationError):
        run(service.get_request("nobody", request_id))


def test_unknown_request(service):
    with pytest.raises(NotFoundError):
        run(service.get_request("admin-1", "missing"))


def test_assign_with_unknown_designer(service, submit):
    request_id = submit()
    with pytest.raises(PreconditionError):
        run(service.assign("admin-1", request_id, designer_id="ghost"))
    assert run(service.store.load_request(request_id)).status == RequestStatus.NEW


def test_generate_design(service, store, renderer, submit):
    request_id = _designed(service, submit)

    outcome = run(service.get_request("designer-1", request_id))
    assert outcome.status == RequestStatus.DESIGN_IN_PROGRESS
    assert outcome.request.design_id == outcome.design.id
    assert outcome.design.report_ref == f"/reports/DesignReport-{request_id}.md"
    assert renderer.rendered == [outcome.design.id]
    assert NotificationType.ASSIGNMENT in _types(store, "designer-1")


def test_second_generate_is_rejected(service, store, submit):
    request_id = _designed(service, submit)
    first = run(service.store.load_request(request_id)).design_id

    with pytest.raises(PreconditionError):
        run(service.generate_design("designer-1", request_id))

    assert run(service.store.load_request(request_id)).design_id == first
    assert len(store._designs) == 1


def test_concurrent_generate_yields_one_design(service, store, submit):
    request_id = submit()
    run(service.assign("admin-1", request_id, designer_id="designer-1"))

    async def race():
        return await asyncio.gather(
            service.generate_design("designer-1", request_id),
            service.generate_design("designer-1", request_id),
            return_exceptions=True,
        )

    results = run(race())
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], PreconditionError)
    assert len(store._designs) == 1


def test_catalog_failure_writes_nothing(service, store, submit, catalog_entries):
    request_id = submit()
    run(service.assign("admin-1", request_id, designer_id="designer-1"))
    service.catalog = DeviceCatalog(catalog_entries[:2])

    with pytest.raises(CatalogIncompleteError):
        run(service.generate_design("designer-1", request_id))

    request = run(store.load_request(request_id))
    assert request.status == RequestStatus.ASSIGNED
    assert request.design_id is None
    assert store._designs == {}


def test_wrong_designer_cannot_submit(service, submit):
    request_id = _designed(service, submit)
    with pytest.raises(AuthorizationError):
        run(service.submit_design("designer-2", request_id))
    assert run(service.store.load_request(request_id)).status == RequestStatus.DESIGN_IN_PROGRESS


def test_render_failure_blocks_submit(service, renderer, submit):
    renderer.fail = True
    request_id = submit()
    run(service.assign("admin-1", request_id, designer_id="designer-1"))
    outcome = run(service.generate_design("designer-1", request_id))

    assert outcome.status == RequestStatus.DESIGN_IN_PROGRESS
    assert outcome.design.report_ref is None
    [failure] = [d for d in outcome.diagnostics if d["detail"].get("effect") == "render_report"]
    assert "Report rendering failed" in failure["message"]

    with pytest.raises(PreconditionError):
        run(service.submit_design("designer-1", request_id))

    renderer.fail = False
    outcome = run(service.render_report("designer-1", request_id))
    assert outcome.design.report_ref is not None
    assert run(service.submit_design("designer-1", request_id)).status == RequestStatus.DESIGN_SUBMITTED


def test_notification_failure_still_commits(service, submit, monkeypatch):
    request_id = _designed(service, submit)

    async def broken(*args, **kwargs):
        raise ConnectionError("notification channel down")

    monkeypatch.setattr(service.notifier, "notify", broken)
    outcome = run(service.submit_design("designer-1", request_id))

    assert outcome.status == RequestStatus.DESIGN_SUBMITTED
    assert run(service.store.load_request(request_id)).status == RequestStatus.DESIGN_SUBMITTED
    assert len(outcome.diagnostics) == 1
    assert outcome.diagnostics[0]["error"] == "side_effect_failed"
    assert outcome.diagnostics[0]["detail"] == {"effect": "notify", "user_id": "admin-1"}


def test_design_only_flow(service, store, submit):
    request_id = _designed(service, submit)
    run(service.submit_design("designer-1", request_id))
    assert NotificationType.DESIGN_REVIEW in _types(store, "admin-1")

    outcome = run(service.approve_design("admin-1", request_id, "Looks good"))
    assert outcome.status == RequestStatus.AWAITING_CLIENT_REVIEW
    assert outcome.design.is_approved
    assert outcome.design.approved_by == "admin-1"
    assert outcome.design.design_notes == "Looks good"
    assert NotificationType.DESIGN_APPROVED in _types(store, "client-1")

    with pytest.raises(AuthorizationError):
        run(service.accept_design("client-2", request_id))

    outcome = run(service.accept_design("client-1", request_id))
    assert outcome.status == RequestStatus.COMPLETED
    assert outcome.request.progress == 100
    assert outcome.request.actual_completion_date is not None
    assert NotificationType.CLIENT_ACCEPTANCE in _types(store, "designer-1")
    assert NotificationType.PROJECT_COMPLETED in _types(store, "admin-1")


def test_design_and_installation_flow(service, store, submit):
    request_id = _designed(service, submit, RequestType.DESIGN_AND_INSTALLATION)
    assert run(service.store.load_request(request_id)).progress == 25

    run(service.submit_design("designer-1", request_id))
    run(service.approve_design("admin-1", request_id))
    outcome = run(service.accept_design("client-1", request_id))
    assert outcome.status == RequestStatus.DESIGN_COMPLETE

    outcome = run(service.start_installation("installer-1", request_id))
    assert outcome.status == RequestStatus.INSTALLATION_IN_PROGRESS

    outcome = run(service.update_installation("installer-1", request_id, 40, "Cabling done"))
    assert outcome.request.progress == 40
    assert outcome.request.installation_notes == ["Cabling done"]

    with pytest.raises(PreconditionError):
        run(service.verify_installation("client-1", request_id))

    run(service.complete_installation("installer-1", request_id))
    with pytest.raises(PreconditionError):
        run(service.update_installation("installer-1", request_id, 50))

    outcome = run(service.verify_installation("client-1", request_id))
    assert outcome.status == RequestStatus.COMPLETED
    assert outcome.request.client_verified_at is not None
    assert NotificationType.INSTALLATION_VERIFIED in _types(store, "installer-1")
    assert NotificationType.INSTALLATION_STARTED in _types(store, "client-1")


def test_installation_only_flow(service, submit):
    request_id = submit(RequestType.INSTALLATION_ONLY)
    run(service.assign("admin-1", request_id, installer_id="installer-1"))

    with pytest.raises(PreconditionError):
        run(service.generate_design("designer-1", request_id))

    outcome = run(service.start_installation("installer-1", request_id))
    assert outcome.status == RequestStatus.INSTALLATION_IN_PROGRESS


def test_installer_assigned_after_acceptance(service, submit):
    request_id = submit(RequestType.DESIGN_AND_INSTALLATION)
    run(service.assign("admin-1", request_id, designer_id="designer-1"))
    run(service.generate_design("designer-1", request_id))
    run(service.submit_design("designer-1", request_id))
    run(service.approve_design("admin-1", request_id))
    run(service.accept_design("client-1", request_id))

    with pytest.raises(AuthorizationError):
        run(service.start_installation("installer-1", request_id))

    outcome = run(service.assign("admin-1", request_id, installer_id="installer-1"))
    assert outcome.status == RequestStatus.DESIGN_COMPLETE
    assert outcome.request.assigned_installer_id == "installer-1"


def test_visibility(service, submit):
    request_id = submit()
    assert [r.id for r in run(service.list_requests("client-1"))] == [request_id]
    assert run(service.list_requests("client-2")) == []
    assert run(service.list_requests("designer-1")) == []

    run(service.assign("admin-1", request_id, designer_id="designer-1"))
    assert len(run(service.list_requests("designer-1"))) == 1
    assert run(service.list_requests("admin-1", RequestStatus.NEW)) == []

    with pytest.raises(AuthorizationError):
        run(service.get_request("client-2", request_id))


def test_missing_request_looks_forbidden_to_non_admins(service, submit):
    submit()
    with pytest.raises(AuthorizationError):
        run(service.get_request("client-2", "missing"))
    with pytest.raises(AuthorizationError):
        run(service.submit_design("designer-1", "missing"))
    with pytest.raises(NotFoundError):
        run(service.assign("admin-1", "missing", designer_id="designer-1"))


def test_override_and_respond(service, store, submit):
    request_id = submit()
    outcome = run(service.override("admin-1", request_id, RequestStatus.COMPLETED))
    assert outcome.status == RequestStatus.COMPLETED

    outcome = run(service.respond("admin-1", request_id, "We will call you"))
    assert outcome.status == RequestStatus.COMPLETED
    assert outcome.request.admin_response == "We will call you"
    assert NotificationType.RESPONSE in _types(store, "client-1")

    with pytest.raises(AuthorizationError):
        run(service.respond("client-1", request_id, "hi"))


def test_stats(service, submit):
    request_id = _designed(service, submit)
    submit()
    run(service.submit_design("designer-1", request_id))
    run(service.approve_design("admin-1", request_id))

    stats = run(service.stats("admin-1"))
    assert stats["total_requests"] == 2
    assert stats["requests_by_status"]["New"] == 1
    assert stats["requests_by_status"]["Awaiting Client Review"] == 1
    assert stats["active_devices"] == 5
    assert stats["approved_design_cost"] == pytest.approx(17200.0)

    with pytest.raises(AuthorizationError):
        run(service.stats("client-1"))


def test_get_design_before_generation(service, submit):
    request_id = submit()
    with pytest.raises(NotFoundError):
        run(service.get_design("client-1", request_id))


def test_departments_required_on_submit(service):
    body = RequestCreate(
        request_type=RequestType.DESIGN_ONLY,
        requirements=CampusRequirements(
            campus_name="X",
            departments=[DepartmentRequirement(name="A"), DepartmentRequirement(name="A")],
        ),
    )
    with pytest.raises(ValidationError) as exc:
        run(service.submit_request("client-1", body))
    assert "duplicate department name 'A'" in exc.value.problems


def test_lost_status_update_releases_design(service, store, submit, monkeypatch):
    request_id = submit()
    run(service.assign("admin-1", request_id, designer_id="designer-1"))

    original = store.update_request_status
    calls = []

    async def lose_first(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise PreconditionError("Request changed concurrently")
        return await original(*args, **kwargs)

    monkeypatch.setattr(store, "update_request_status", lose_first)

    with pytest.raises(PreconditionError):
        run(service.generate_design("designer-1", request_id))

    request = run(store.load_request(request_id))
    assert request.status == RequestStatus.ASSIGNED
    assert request.design_id is None
    assert store._designs == {}

    outcome = run(service.generate_design("designer-1", request_id))
    assert outcome.status == RequestStatus.DESIGN_IN_PROGRESS
    assert outcome.request.design_id == outcome.design.id
    assert list(store._designs) == [outcome.design.id]


def _stale_once(store, monkeypatch, snapshot):
    original = store.load_request
    served = []

    async def load(request_id):
        if not served:
            served.append(request_id)
            return snapshot
        return await original(request_id)

    monkeypatch.setattr(store, "load_request", load)


def test_progress_from_stale_read_does_not_overwrite_completion(service, store, submit, monkeypatch):
    request_id = submit(RequestType.INSTALLATION_ONLY)
    run(service.assign("admin-1", request_id, installer_id="installer-1"))
    run(service.start_installation("installer-1", request_id))

    stale = run(store.load_request(request_id))
    run(service.complete_installation("installer-1", request_id))
    _stale_once(store, monkeypatch, stale)

    with pytest.raises(PreconditionError):
        run(service.update_installation("installer-1", request_id, 40))

    request = run(store.load_request(request_id))
    assert request.installation_progress == 100
    assert request.installation_completed_at is not None


def test_concurrent_notes_are_not_lost(service, store, submit, monkeypatch):
    request_id = submit(RequestType.INSTALLATION_ONLY)
    run(service.assign("admin-1", request_id, installer_id="installer-1"))
    run(service.start_installation("installer-1", request_id))

    stale = run(store.load_request(request_id))
    run(service.update_installation("installer-1", request_id, 30, "Rack mounted"))
    _stale_once(store, monkeypatch, stale)

    with pytest.raises(PreconditionError):
        run(service.update_installation("installer-1", request_id, 35, "Patch panel"))

    outcome = run(service.update_installation("installer-1", request_id, 35, "Patch panel"))
    assert outcome.request.installation_notes == ["Rack mounted", "Patch panel"]
