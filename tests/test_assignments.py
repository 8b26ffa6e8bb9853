from __future__ import annotations

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError

from reportdesk.core.errors import AssignmentConflict, NotFoundOrUnauthorized, ValidationError
from reportdesk.models.assignment import StudentSupervisorAssignment
from reportdesk.models.audit import ActivityLog
from reportdesk.models.enums import Role
from reportdesk.services import assignments


def _active_rows(db, student_id):
    return (
        db.query(StudentSupervisorAssignment)
        .filter(
            StudentSupervisorAssignment.student_id == student_id,
            StudentSupervisorAssignment.is_active.is_(True),
        )
        .all()
    )


def test_assign_creates_active_assignment(db, student, supervisor, coordinator):
    assignment = assignments.assign(
        db, student_id=student.id, supervisor_id=supervisor.id, coordinator_id=coordinator.id
    )
    db.commit()

    assert assignment.is_active is True
    assert assignment.level_coordinator_id == coordinator.id
    assert assignments.get_active_assignment(db, student.id).supervisor_id == supervisor.id

    log = db.query(ActivityLog).filter(ActivityLog.action == "Assigned Student to Supervisor").one()
    assert log.actor_user_id == coordinator.id
    assert log.resource_id == student.id


def test_reassign_keeps_single_active_row(db, make_user, student, supervisor, coordinator):
    other = make_user(Role.SUPERVISOR, full_name="Olu Other")
    first = assignments.assign(db, student_id=student.id, supervisor_id=supervisor.id, coordinator_id=coordinator.id)
    second = assignments.assign(db, student_id=student.id, supervisor_id=other.id, coordinator_id=coordinator.id)
    db.commit()

    active = _active_rows(db, student.id)
    assert [row.id for row in active] == [second.id]
    assert active[0].supervisor_id == other.id

    db.refresh(first)
    assert first.is_active is False
    assert db.query(StudentSupervisorAssignment).count() == 2


def test_active_index_rejects_second_active_row(db, student, supervisor, coordinator):
    for _ in range(2):
        db.add(
            StudentSupervisorAssignment(
                student_id=student.id,
                supervisor_id=supervisor.id,
                level_coordinator_id=coordinator.id,
                is_active=True,
            )
        )
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_assign_reports_conflict_when_a_concurrent_row_wins(db, student, supervisor, coordinator):
    student_id, supervisor_id, coordinator_id = student.id, supervisor.id, coordinator.id
    db.commit()

    def _competing_assignment(session, _flush_context, _instances):
        session.connection().execute(
            StudentSupervisorAssignment.__table__.insert().values(
                student_id=student_id,
                supervisor_id=supervisor_id,
                level_coordinator_id=coordinator_id,
                is_active=True,
            )
        )

    event.listen(db, "before_flush", _competing_assignment, once=True)
    with pytest.raises(AssignmentConflict):
        assignments.assign(db, student_id=student_id, supervisor_id=supervisor_id, coordinator_id=coordinator_id)

    assert _active_rows(db, student_id) == []
    assert db.query(ActivityLog).filter(ActivityLog.action == "Assigned Student to Supervisor").count() == 0


def test_assign_rejects_wrong_roles(db, make_user, student, supervisor, coordinator):
    with pytest.raises(ValidationError):
        assignments.assign(db, student_id=supervisor.id, supervisor_id=supervisor.id, coordinator_id=coordinator.id)
    with pytest.raises(ValidationError):
        assignments.assign(db, student_id=student.id, supervisor_id=coordinator.id, coordinator_id=coordinator.id)

    inactive = make_user(Role.SUPERVISOR, is_active=False)
    with pytest.raises(ValidationError):
        assignments.assign(db, student_id=student.id, supervisor_id=inactive.id, coordinator_id=coordinator.id)


def test_unassign_requires_owning_coordinator(db, make_user, student, supervisor, coordinator):
    assignment = assignments.assign(
        db, student_id=student.id, supervisor_id=supervisor.id, coordinator_id=coordinator.id
    )
    db.commit()
    intruder = make_user(Role.LEVEL_COORDINATOR)

    with pytest.raises(NotFoundOrUnauthorized):
        assignments.unassign(db, assignment_id=assignment.id, coordinator_id=intruder.id)
    assert _active_rows(db, student.id)

    assignments.unassign(db, assignment_id=assignment.id, coordinator_id=coordinator.id)
    db.commit()
    assert _active_rows(db, student.id) == []
    assert db.get(StudentSupervisorAssignment, assignment.id) is not None


def test_unassign_unknown_assignment(db, coordinator):
    with pytest.raises(NotFoundOrUnauthorized):
        assignments.unassign(db, assignment_id=999, coordinator_id=coordinator.id)


def test_unassigned_students_and_loads(db, make_user, student, supervisor, coordinator):
    waiting = make_user(Role.STUDENT, full_name="Bola Waiting")
    make_user(Role.STUDENT, full_name="Other Level", level="300")
    assignments.assign(db, student_id=student.id, supervisor_id=supervisor.id, coordinator_id=coordinator.id)
    db.commit()

    assert [user.id for user in assignments.unassigned_students(db, level="400")] == [waiting.id]

    loads = assignments.supervisor_loads(db)
    assert len(loads) == 1
    assert loads[0].assigned_students == 1
    assert loads[0].available_slots == loads[0].capacity - 1
    assert not loads[0].is_full

    assert assignments.supervisor_student_ids(db, supervisor.id) == [student.id]
    assert [row.student_id for row in assignments.list_active(db, level="400")] == [student.id]
    assert assignments.list_active(db, level="300") == []
