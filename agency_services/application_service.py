"""
agency_services.application_service -- Creating and reading applications.

Status changes are NOT made here; they go through StatusWorkflowService so
every change passes the transition tables.
"""

from __future__ import annotations

from agency_kernel.domain.records import Application
from agency_kernel.domain.roles import Action, Caller
from agency_kernel.domain.status import ApplicationStatus, EntityKind
from agency_kernel.domain.visibility import resolve_scope
from agency_kernel.exceptions import EntityNotFoundError, ForeignHierarchyError
from agency_kernel.logging_config import get_logger
from agency_services.base import AgencyService

logger = get_logger("services.application")


class ApplicationService(AgencyService):
    """
    Application intake and scoped reads.

    Guarantees:
        - superagent_id is always the caller's top-level agent.
        - created_by is always the caller.
        - New applications start Pending.
        - subagent_id / counsellor_id must belong to the caller's hierarchy.
    """

    def create_application(
        self,
        caller: Caller,
        student_name: str,
        email: str = "",
        phone: str = "",
        preferred_college: str = "",
        preferred_course: str = "",
        subagent_id: str | None = None,
        counsellor_id: str | None = None,
        notes: str | None = None,
    ) -> Application:
        """
        Enter a new application on behalf of ``caller``.

        Raises:
            PermissionDeniedError: caller is a counsellor.
            ForeignHierarchyError: subagent_id or counsellor_id belongs to
                another top-level agent.
            ValueError: student_name is blank.
        """
        self._require(caller, Action.CREATE_APPLICATION)
        if not student_name or not student_name.strip():
            raise ValueError("student_name is required")

        with self._unit_of_work():
            if subagent_id:
                self._check_subagent(caller, subagent_id)
            if counsellor_id:
                self._check_counsellor(caller, counsellor_id)

            application = self._store.insert_entity(
                EntityKind.APPLICATION,
                {
                    "student_name": student_name.strip(),
                    "email": email,
                    "phone": phone,
                    "preferred_college": preferred_college,
                    "preferred_course": preferred_course,
                    "status": ApplicationStatus.PENDING.value,
                    "notes": notes,
                    "created_by": caller.user_id,
                    "subagent_id": subagent_id,
                    "superagent_id": caller.top_agent_id,
                    "counsellor_id": counsellor_id,
                },
            )

        logger.info(
            "application_created",
            extra={
                "application_id": application.id,
                "actor_id": caller.user_id,
                "superagent_id": application.superagent_id,
                "subagent_id": subagent_id,
            },
        )
        return application

    def assign_counsellor(
        self,
        caller: Caller,
        application_id: str,
        counsellor_id: str | None,
    ) -> Application:
        """Assign (or with None, unassign) the counsellor following a student."""
        self._require(caller, Action.MANAGE_COUNSELLORS)
        with self._unit_of_work():
            self._scoped(caller, EntityKind.APPLICATION, application_id)
            if counsellor_id:
                self._check_counsellor(caller, counsellor_id)
            application = self._store.update_entity(
                EntityKind.APPLICATION, application_id, {"counsellor_id": counsellor_id},
            )
        logger.info(
            "application_counsellor_assigned",
            extra={"application_id": application_id, "counsellor_id": counsellor_id},
        )
        return application

    def get_application(self, caller: Caller, application_id: str) -> Application:
        return self._scoped(caller, EntityKind.APPLICATION, application_id)

    def list_applications(self, caller: Caller) -> list[Application]:
        return self._selector.list_applications(
            resolve_scope(caller, EntityKind.APPLICATION),
        )

    # ------------------------------------------------------------------

    def _check_subagent(self, caller: Caller, subagent_id: str) -> None:
        subagent = self._store.read_entity(EntityKind.AGENT, subagent_id)
        if subagent is None or subagent.is_top_level:
            raise EntityNotFoundError("sub_agent", subagent_id)
        if subagent.super_agent != caller.top_agent_id:
            raise ForeignHierarchyError(subagent_id, caller.top_agent_id)

    def _check_counsellor(self, caller: Caller, counsellor_user_id: str) -> None:
        counsellor = self._store.find_by_key(EntityKind.COUNSELLOR, "user_id", counsellor_user_id)
        if counsellor is None:
            raise EntityNotFoundError(EntityKind.COUNSELLOR.value, counsellor_user_id)
        if counsellor.agent_id != caller.top_agent_id:
            raise ForeignHierarchyError(counsellor_user_id, caller.top_agent_id)
