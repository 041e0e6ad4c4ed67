"""
agency_services.callers -- Build a ``Caller`` from an authenticated user id.

The user id is looked up in agents first, then in counsellors.  Whatever
authenticated the user is outside this package; by the time a user id
reaches here it is trusted.
"""

from __future__ import annotations

from agency_kernel.domain.roles import Caller
from agency_kernel.domain.status import EntityKind
from agency_kernel.exceptions import CallerNotFoundError
from agency_services.data_store import DataStore


def resolve_caller(store: DataStore, user_id: str) -> Caller:
    """
    Resolve ``user_id`` to a Caller with its role and owning top-level agent.

    Raises:
        CallerNotFoundError: user id is neither an agent nor a counsellor.
    """
    agent = store.read_entity(EntityKind.AGENT, user_id)
    if agent is not None:
        return Caller.from_agent(agent)

    counsellor = store.find_by_key(EntityKind.COUNSELLOR, "user_id", user_id)
    if counsellor is not None:
        return Caller.from_counsellor(counsellor)

    raise CallerNotFoundError(user_id)
