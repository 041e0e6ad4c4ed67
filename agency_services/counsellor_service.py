"""
agency_services.counsellor_service -- Counsellor accounts owned by an agent
or sub-agent.

Responsibility:
    Create, list, edit, and delete the counsellors a parent owns, enforcing
    the per-parent cap (``EngineSettings.counsellor_cap``, default 2).

Invariants enforced:
    - Cap check: count by parent_id; at the cap creation fails with
      CapacityExceededError.
    - Atomic backstop: each counsellor holds a slot in 1..cap and
      UNIQUE(parent_id, slot) rejects a concurrent duplicate.  A slot
      collision retries with the next free slot, and runs out as
      CapacityExceededError.
    - Only the parent may edit or delete its counsellors; anyone else gets
      EntityNotFoundError.
"""

from __future__ import annotations

from agency_kernel.domain.records import Counsellor
from agency_kernel.domain.roles import Action, Caller
from agency_kernel.domain.status import EntityKind
from agency_kernel.exceptions import (
    CapacityExceededError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from agency_kernel.logging_config import get_logger
from agency_services.base import AgencyService

logger = get_logger("services.counsellor")

_EDITABLE_FIELDS = ("name", "email", "phone")


class CounsellorService(AgencyService):
    def create_counsellor(
        self,
        caller: Caller,
        user_id: str,
        name: str,
        email: str = "",
        phone: str = "",
    ) -> Counsellor:
        """
        Create a counsellor under ``caller``.

        Raises:
            PermissionDeniedError: caller is a counsellor.
            CapacityExceededError: caller already owns the maximum.
            DuplicateEntityError: user_id is already an account.
        """
        self._require(caller, Action.MANAGE_COUNSELLORS)
        cap = self._settings.counsellor_cap

        with self._unit_of_work():
            if self._store.read_entity(EntityKind.AGENT, user_id) is not None:
                raise DuplicateEntityError(EntityKind.COUNSELLOR.value, f"{user_id} is an agent")

            count = self._store.count_entities(EntityKind.COUNSELLOR, "parent_id", caller.user_id)
            if count >= cap:
                logger.warning(
                    "counsellor_cap_reached",
                    extra={"parent_id": caller.user_id, "count": count, "cap": cap},
                )
                raise CapacityExceededError(caller.user_id, cap)

            counsellor = self._insert_in_free_slot(caller, user_id, name, email, phone, cap)

        logger.info(
            "counsellor_created",
            extra={
                "counsellor_id": counsellor.id,
                "parent_id": caller.user_id,
                "agent_id": counsellor.agent_id,
                "slot": counsellor.slot,
            },
        )
        return counsellor

    def _insert_in_free_slot(
        self,
        caller: Caller,
        user_id: str,
        name: str,
        email: str,
        phone: str,
        cap: int,
    ) -> Counsellor:
        for _ in range(cap):
            taken = {
                c.slot
                for c in self._store.list_entities(EntityKind.COUNSELLOR, "parent_id", caller.user_id)
            }
            free = [slot for slot in range(1, cap + 1) if slot not in taken]
            if not free:
                break
            try:
                return self._store.insert_entity(
                    EntityKind.COUNSELLOR,
                    {
                        "user_id": user_id,
                        "name": name,
                        "email": email,
                        "phone": phone,
                        "parent_id": caller.user_id,
                        "agent_id": caller.top_agent_id,
                        "slot": free[0],
                    },
                )
            except DuplicateEntityError:
                if self._store.find_by_key(EntityKind.COUNSELLOR, "user_id", user_id) is not None:
                    raise
                logger.info(
                    "counsellor_slot_taken",
                    extra={"parent_id": caller.user_id, "slot": free[0]},
                )
        raise CapacityExceededError(caller.user_id, cap)

    def list_counsellors(self, caller: Caller) -> list[Counsellor]:
        self._require(caller, Action.MANAGE_COUNSELLORS)
        counsellors = self._store.list_entities(EntityKind.COUNSELLOR, "parent_id", caller.user_id)
        return sorted(counsellors, key=lambda c: c.slot)

    def update_counsellor(self, caller: Caller, counsellor_id: str, **changes: str) -> Counsellor:
        """Edit name, email, or phone of one of the caller's counsellors."""
        self._require(caller, Action.MANAGE_COUNSELLORS)
        unknown = sorted(set(changes) - set(_EDITABLE_FIELDS))
        if unknown:
            raise ValueError(f"Counsellor fields not editable: {', '.join(unknown)}")

        with self._unit_of_work():
            self._owned(caller, counsellor_id)
            if not changes:
                return self._store.read_entity(EntityKind.COUNSELLOR, counsellor_id)
            counsellor = self._store.update_entity(EntityKind.COUNSELLOR, counsellor_id, changes)

        logger.info(
            "counsellor_updated",
            extra={"counsellor_id": counsellor_id, "fields": sorted(changes)},
        )
        return counsellor

    def delete_counsellor(self, caller: Caller, counsellor_id: str) -> None:
        """Delete one of the caller's counsellors, freeing its slot."""
        self._require(caller, Action.MANAGE_COUNSELLORS)
        with self._unit_of_work():
            counsellor = self._owned(caller, counsellor_id)
            self._store.delete_entity(EntityKind.COUNSELLOR, counsellor_id)
        logger.info(
            "counsellor_deleted",
            extra={"counsellor_id": counsellor_id, "parent_id": caller.user_id, "slot": counsellor.slot},
        )

    def _owned(self, caller: Caller, counsellor_id: str) -> Counsellor:
        counsellor = self._store.read_entity(EntityKind.COUNSELLOR, counsellor_id)
        if counsellor is None or counsellor.parent_id != caller.user_id:
            raise EntityNotFoundError(EntityKind.COUNSELLOR.value, counsellor_id)
        return counsellor
