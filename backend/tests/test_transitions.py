import pytest

from campusnet.errors import AuthorizationError, PreconditionError, ValidationError
from campusnet.models.design import Design
from campusnet.models.notification import NotificationType
from campusnet.models.request import Request, RequestStatus, RequestType
from campusnet.models.requirements import CampusRequirements
from campusnet.models.user import Role, User
from campusnet.workflow.transitions import (
    ACTION_ROLES,
    TRANSITIONS,
    Action,
    Notify,
    RenderReport,
    TransitionContext,
    allowed_actions,
    apply_transition,
)

ADMIN = User(id="admin-1", name="Admin", role=Role.ADMIN)
DESIGNER = User(id="designer-1", name="Dana", role=Role.DESIGNER)
OTHER_DESIGNER = User(id="designer-2", name="Dev", role=Role.DESIGNER)
INSTALLER = User(id="installer-1", name="Ira", role=Role.INSTALLER)
CLIENT = User(id="client-1", name="Client", role=Role.CLIENT)


def _request(status=RequestStatus.NEW, request_type=RequestType.DESIGN_ONLY, **fields):
    return Request(
        id="req-0001",
        client_id=CLIENT.id,
        request_type=request_type,
        requirements=CampusRequirements(campus_name="North"),
        status=status,
        **fields,
    )


def _ctx(request, actor, **kwargs):
    return TransitionContext(request=request, actor=actor, **kwargs)


def test_every_action_has_roles():
    assert set(ACTION_ROLES) == set(Action)


def test_override_and_respond_exist_for_every_status():
    for status in RequestStatus:
        assert (status, Action.OVERRIDE) in TRANSITIONS
        assert (status, Action.RESPOND) in TRANSITIONS


def test_allowed_actions_for_new():
    assert allowed_actions(RequestStatus.NEW) == [Action.ASSIGN, Action.OVERRIDE, Action.RESPOND]


def test_assign_moves_new_to_assigned():
    ctx = _ctx(_request(), ADMIN, payload={"designer": DESIGNER})
    result = apply_transition(Action.ASSIGN, ctx)
    assert result.status == RequestStatus.ASSIGNED
    assert result.fields == {"assigned_designer_id": "designer-1"}
    assert {e.user_id for e in result.effects} == {"client-1", "designer-1"}


def test_assign_requires_matching_role():
    ctx = _ctx(_request(), ADMIN, payload={"designer": INSTALLER})
    with pytest.raises(PreconditionError):
        apply_transition(Action.ASSIGN, ctx)


def test_assign_without_designer():
    with pytest.raises(PreconditionError):
        apply_transition(Action.ASSIGN, _ctx(_request(), ADMIN))


def test_role_checked_before_status():
    ctx = _ctx(_request(RequestStatus.COMPLETED), CLIENT)
    with pytest.raises(AuthorizationError):
        apply_transition(Action.GENERATE_DESIGN, ctx)


def test_pair_outside_table():
    request = _request(RequestStatus.NEW, assigned_designer_id=DESIGNER.id)
    with pytest.raises(PreconditionError):
        apply_transition(Action.SUBMIT_DESIGN, _ctx(request, DESIGNER))


def test_generate_requires_assigned_designer():
    request = _request(RequestStatus.ASSIGNED, assigned_designer_id=DESIGNER.id)
    with pytest.raises(AuthorizationError):
        apply_transition(Action.GENERATE_DESIGN, _ctx(request, OTHER_DESIGNER))


def test_generate_schedules_report():
    request = _request(RequestStatus.ASSIGNED, assigned_designer_id=DESIGNER.id)
    ctx = _ctx(request, DESIGNER, payload={"design_id": "d-1"})
    result = apply_transition(Action.GENERATE_DESIGN, ctx)
    assert result.status == RequestStatus.DESIGN_IN_PROGRESS
    assert result.fields == {"design_id": "d-1"}
    assert result.effects == [RenderReport("d-1")]


def test_installation_only_cannot_generate():
    request = _request(
        RequestStatus.ASSIGNED,
        RequestType.INSTALLATION_ONLY,
        assigned_designer_id=DESIGNER.id,
    )
    with pytest.raises(PreconditionError):
        apply_transition(Action.GENERATE_DESIGN, _ctx(request, DESIGNER, payload={"design_id": "x"}))


def test_submit_requires_report():
    request = _request(
        RequestStatus.DESIGN_IN_PROGRESS, assigned_designer_id=DESIGNER.id, design_id="d-1"
    )
    design = Design(id="d-1", request_id=request.id)
    with pytest.raises(PreconditionError):
        apply_transition(Action.SUBMIT_DESIGN, _ctx(request, DESIGNER, design=design))

    design = design.model_copy(update={"report_ref": "/reports/x.md"})
    result = apply_transition(Action.SUBMIT_DESIGN, _ctx(request, DESIGNER, design=design))
    assert result.status == RequestStatus.DESIGN_SUBMITTED
    [notify] = result.effects
    assert notify.role == Role.ADMIN
    assert notify.type == NotificationType.DESIGN_REVIEW


def test_accept_depends_on_request_type():
    design = Design(id="d-1", request_id="req-0001", report_ref="/reports/x.md", is_approved=True)

    design_only = _request(RequestStatus.AWAITING_CLIENT_REVIEW, design_id="d-1")
    result = apply_transition(Action.ACCEPT_DESIGN, _ctx(design_only, CLIENT, design=design))
    assert result.status == RequestStatus.COMPLETED
    assert "actual_completion_date" in result.fields

    both = _request(
        RequestStatus.AWAITING_CLIENT_REVIEW,
        RequestType.DESIGN_AND_INSTALLATION,
        design_id="d-1",
    )
    result = apply_transition(Action.ACCEPT_DESIGN, _ctx(both, CLIENT, design=design))
    assert result.status == RequestStatus.DESIGN_COMPLETE


def test_design_only_cannot_start_installation():
    request = _request(RequestStatus.DESIGN_COMPLETE, assigned_installer_id=INSTALLER.id)
    with pytest.raises(PreconditionError):
        apply_transition(Action.START_INSTALLATION, _ctx(request, INSTALLER))


@pytest.mark.parametrize("progress", [-1, 100, None])
def test_progress_out_of_range(progress):
    request = _request(
        RequestStatus.INSTALLATION_IN_PROGRESS,
        RequestType.INSTALLATION_ONLY,
        assigned_installer_id=INSTALLER.id,
    )
    ctx = _ctx(request, INSTALLER, payload={"progress": progress})
    with pytest.raises(ValidationError):
        apply_transition(Action.UPDATE_INSTALLATION, ctx)


def test_verify_requires_completion():
    request = _request(
        RequestStatus.INSTALLATION_IN_PROGRESS,
        RequestType.INSTALLATION_ONLY,
        assigned_installer_id=INSTALLER.id,
    )
    with pytest.raises(PreconditionError):
        apply_transition(Action.VERIFY_INSTALLATION, _ctx(request, CLIENT))


def test_override_to_any_status():
    request = _request(RequestStatus.DESIGN_SUBMITTED)
    ctx = _ctx(request, ADMIN, payload={"status": RequestStatus.NEW})
    assert apply_transition(Action.OVERRIDE, ctx).status == RequestStatus.NEW


def test_respond_keeps_status():
    request = _request(RequestStatus.ASSIGNED)
    result = apply_transition(Action.RESPOND, _ctx(request, ADMIN, payload={"response": " ok "}))
    assert result.status == RequestStatus.ASSIGNED
    assert result.fields["admin_response"] == "ok"
    assert isinstance(result.effects[0], Notify)
