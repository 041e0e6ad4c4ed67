"""ORM models for the agency kernel."""

from agency_kernel.domain.status import EntityKind
from agency_kernel.models.agent import AgentModel, CounsellorModel
from agency_kernel.models.application import ApplicationModel
from agency_kernel.models.catalog import CollegeModel, CourseModel
from agency_kernel.models.transaction import CommissionModel, TransactionModel

# EntityKind -> ORM class, used by the data store and selectors.
MODEL_REGISTRY = {
    EntityKind.AGENT: AgentModel,
    EntityKind.COUNSELLOR: CounsellorModel,
    EntityKind.COLLEGE: CollegeModel,
    EntityKind.COURSE: CourseModel,
    EntityKind.APPLICATION: ApplicationModel,
    EntityKind.TRANSACTION: TransactionModel,
    EntityKind.COMMISSION: CommissionModel,
}

__all__ = [
    "AgentModel",
    "CounsellorModel",
    "CollegeModel",
    "CourseModel",
    "ApplicationModel",
    "TransactionModel",
    "CommissionModel",
    "MODEL_REGISTRY",
]
