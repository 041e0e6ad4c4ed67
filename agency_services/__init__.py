"""
agency_services -- imperative shell over the agency kernel.

Services take a SQLAlchemy Session (and optionally EngineSettings, a Clock,
and a DataStore) and run one unit of work per public method.
"""

from agency_services.agent_service import AgentService
from agency_services.application_service import ApplicationService
from agency_services.callers import resolve_caller
from agency_services.cascade_dispatcher import CascadeDispatcher
from agency_services.catalog import CatalogResolver
from agency_services.commission_service import CommissionService
from agency_services.counsellor_service import CounsellorService
from agency_services.data_store import DataStore, SqlAlchemyDataStore
from agency_services.status_workflow import StatusWorkflowService
from agency_services.transaction_service import TransactionService

__all__ = [
    "AgentService",
    "ApplicationService",
    "CascadeDispatcher",
    "CatalogResolver",
    "CommissionService",
    "CounsellorService",
    "DataStore",
    "SqlAlchemyDataStore",
    "StatusWorkflowService",
    "TransactionService",
    "resolve_caller",
]
