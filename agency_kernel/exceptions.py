"""
Typed Exception Hierarchy for the Agency Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The status workflow blocks the same user action for very different reasons.
A sub-agent asking to complete an application is told "not from this state";
a counsellor asking for anything is told "not with this role".  The caller
has to react differently (wait for a different state vs. ask for a role
change), so every failure is a distinct class with:
  1. a CODE class attribute (machine-readable, API-safe)
  2. structured attributes (not just a message string)

Example:
    try:
        workflow.change_application_status(caller, app_id, "Completed")
    except PermissionDeniedError as e:
        api_response(code=e.code, role=e.role)
    except InvalidTransitionError as e:
        api_response(code=e.code, allowed=sorted(e.allowed))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AgencyKernelError (base)
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- CascadeFailureError
    |
    +-- AuthorizationError
    |   +-- PermissionDeniedError
    |
    +-- NotFoundError
    |   +-- EntityNotFoundError
    |   +-- CallerNotFoundError
    |
    +-- HierarchyError
    |   +-- CapacityExceededError
    |   +-- HierarchyDepthError
    |   +-- ForeignHierarchyError
    |
    +-- DuplicateEntityError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                      | When Raised
--------------|---------------------------|--------------------------------------
Workflow      | INVALID_TRANSITION        | Requested status not allowed from
              |                           | current status for caller's role
              | CASCADE_FAILURE           | Dependent record write failed; only
              |                           | ever captured in a CascadeOutcome
--------------|---------------------------|--------------------------------------
Authorization | PERMISSION_DENIED         | Role may never perform this mutation
--------------|---------------------------|--------------------------------------
Not found     | ENTITY_NOT_FOUND          | Primary entity missing or outside the
              |                           | caller's visibility scope
              | CALLER_NOT_FOUND          | user id is neither agent nor counsellor
--------------|---------------------------|--------------------------------------
Hierarchy     | CAPACITY_EXCEEDED         | Counsellor cap reached for parent
              | HIERARCHY_DEPTH_EXCEEDED  | Sub-agent tried to create a sub-agent
              | FOREIGN_HIERARCHY         | Referenced account belongs to another
              |                           | top-level agent
--------------|---------------------------|--------------------------------------
Persistence   | DUPLICATE_ENTITY          | Insert hit a unique key (transaction
              |                           | per application, commission per
              |                           | transaction, counsellor slot)
--------------|---------------------------|--------------------------------------
Config       | CONFIGURATION_ERROR       | Engine settings failed validation

===============================================================================
PROPAGATION
===============================================================================

InvalidTransition, PermissionDenied, NotFound and CapacityExceeded abort the
operation; the service rolls back and re-raises.  CascadeFailureError is
raised inside the cascade dispatcher only, caught there, logged, and turned
into ``CascadeOutcome.failure`` -- the primary status change stands.
"""


class AgencyKernelError(Exception):
    """
    Base exception for all agency kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "AGENCY_KERNEL_ERROR"


# Workflow exceptions


class WorkflowError(AgencyKernelError):
    """Base exception for status workflow errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Requested status is not in the allowed set for this role and state."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_kind: str,
        entity_id: str,
        from_status: str,
        to_status: str,
        allowed: frozenset[str] = frozenset(),
    ):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed
        super().__init__(
            f"Cannot move {entity_kind} {entity_id} from '{from_status}' "
            f"to '{to_status}'"
        )


class CascadeFailureError(WorkflowError):
    """
    Dependent record creation/update failed after the primary change.

    Never propagated to callers: the dispatcher converts it into a
    ``CascadeFailure`` on the returned outcome.
    """

    code: str = "CASCADE_FAILURE"

    def __init__(self, source_kind: str, source_id: str, reason: str):
        self.source_kind = source_kind
        self.source_id = source_id
        self.reason = reason
        super().__init__(
            f"Cascade from {source_kind} {source_id} failed: {reason}"
        )


# Authorization exceptions


class AuthorizationError(AgencyKernelError):
    """Base exception for role-based authorization errors."""

    code: str = "AUTHORIZATION_ERROR"


class PermissionDeniedError(AuthorizationError):
    """
    Caller's role is categorically forbidden from this mutation.

    Distinct from InvalidTransitionError: no state of the entity would
    make the action legal for this role.
    """

    code: str = "PERMISSION_DENIED"

    def __init__(self, actor_id: str, role: str, action: str):
        self.actor_id = actor_id
        self.role = role
        self.action = action
        super().__init__(f"Role '{role}' ({actor_id}) may not {action}")


# Not-found exceptions


class NotFoundError(AgencyKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class EntityNotFoundError(NotFoundError):
    """Entity does not exist (or is not visible to the caller)."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_kind: str, entity_id: str):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(f"{entity_kind} not found: {entity_id}")


class CallerNotFoundError(NotFoundError):
    """User id is registered neither as an agent nor as a counsellor."""

    code: str = "CALLER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No agent or counsellor record for user {user_id}")


# Hierarchy exceptions


class HierarchyError(AgencyKernelError):
    """Base exception for agent hierarchy constraints."""

    code: str = "HIERARCHY_ERROR"


class CapacityExceededError(HierarchyError):
    """Parent already owns the maximum number of counsellors."""

    code: str = "CAPACITY_EXCEEDED"

    def __init__(self, parent_id: str, capacity: int):
        self.parent_id = parent_id
        self.capacity = capacity
        super().__init__(
            f"Parent {parent_id} already has the maximum of {capacity} counsellors"
        )


class HierarchyDepthError(HierarchyError):
    """Creating this account would nest the hierarchy deeper than two levels."""

    code: str = "HIERARCHY_DEPTH_EXCEEDED"

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"Sub-agent {actor_id} cannot create sub-agents")


class ForeignHierarchyError(HierarchyError):
    """Referenced account belongs to a different top-level agent."""

    code: str = "FOREIGN_HIERARCHY"

    def __init__(self, reference_id: str, expected_top_agent_id: str):
        self.reference_id = reference_id
        self.expected_top_agent_id = expected_top_agent_id
        super().__init__(
            f"{reference_id} is not part of agent {expected_top_agent_id}'s hierarchy"
        )


# Persistence exceptions


class DuplicateEntityError(AgencyKernelError):
    """Insert collided with an existing row on a unique key."""

    code: str = "DUPLICATE_ENTITY"

    def __init__(self, entity_kind: str, detail: str = ""):
        self.entity_kind = entity_kind
        self.detail = detail
        super().__init__(f"Duplicate {entity_kind}: {detail}")


# Configuration exceptions


class ConfigurationError(AgencyKernelError):
    """Engine settings failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid setting '{field_name}': {reason}")
