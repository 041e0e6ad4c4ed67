"""
agency_services.agent_service -- Sub-agent accounts.

The hierarchy is at most two levels deep: a top-level agent may create
sub-agents, a sub-agent may not.
"""

from __future__ import annotations

from agency_kernel.domain.records import Agent
from agency_kernel.domain.roles import Action, Caller, CallerRole
from agency_kernel.domain.status import EntityKind
from agency_kernel.exceptions import DuplicateEntityError, HierarchyDepthError
from agency_kernel.logging_config import get_logger
from agency_services.base import AgencyService

logger = get_logger("services.agent")


class AgentService(AgencyService):
    def create_subagent(self, caller: Caller, user_id: str, name: str, email: str = "") -> Agent:
        """
        Create a sub-agent under a top-level agent.

        Raises:
            HierarchyDepthError: caller is itself a sub-agent.
            PermissionDeniedError: caller is a counsellor.
            DuplicateEntityError: user_id is already an account.
        """
        if caller.role is CallerRole.SUB_AGENT:
            raise HierarchyDepthError(caller.user_id)
        self._require(caller, Action.CREATE_SUB_AGENT)

        with self._unit_of_work():
            if self._store.read_entity(EntityKind.AGENT, user_id) is not None:
                raise DuplicateEntityError(EntityKind.AGENT.value, f"{user_id} already exists")
            if self._store.find_by_key(EntityKind.COUNSELLOR, "user_id", user_id) is not None:
                raise DuplicateEntityError(EntityKind.AGENT.value, f"{user_id} is a counsellor")
            subagent = self._store.insert_entity(
                EntityKind.AGENT,
                {
                    "user_id": user_id,
                    "name": name,
                    "email": email,
                    "super_agent": caller.user_id,
                },
            )

        logger.info(
            "subagent_created",
            extra={"subagent_id": subagent.user_id, "super_agent": caller.user_id},
        )
        return subagent

    def list_subagents(self, caller: Caller) -> list[Agent]:
        """Sub-agents of the caller's hierarchy, oldest first."""
        self._require(caller, Action.CREATE_SUB_AGENT)
        return self._store.list_entities(EntityKind.AGENT, "super_agent", caller.user_id)
