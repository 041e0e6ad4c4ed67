"""
Tests for the mapped schema: tables and the unique keys the workflow
relies on for race safety.
"""

from sqlalchemy import inspect

from agency_kernel.db.base import Base
from agency_kernel.domain.status import EntityKind
from agency_kernel.models import MODEL_REGISTRY

EXPECTED_TABLES = {
    "agents",
    "counsellors",
    "colleges",
    "courses",
    "applications",
    "transactions",
    "commissions",
}


def _unique_column_sets(engine, table: str) -> set[tuple[str, ...]]:
    inspector = inspect(engine)
    return {
        tuple(sorted(uc["column_names"]))
        for uc in inspector.get_unique_constraints(table)
    }


class TestSchema:
    def test_all_tables_created(self, db_engine, db_tables):
        assert EXPECTED_TABLES <= set(inspect(db_engine).get_table_names())

    def test_metadata_matches_registry(self):
        assert {m.__tablename__ for m in MODEL_REGISTRY.values()} == EXPECTED_TABLES
        assert EXPECTED_TABLES <= set(Base.metadata.tables)

    def test_registry_covers_every_kind(self):
        assert set(MODEL_REGISTRY) == set(EntityKind)

    def test_one_transaction_per_application(self, db_engine, db_tables):
        assert ("application_id",) in _unique_column_sets(db_engine, "transactions")

    def test_one_commission_per_transaction(self, db_engine, db_tables):
        assert ("transaction_id",) in _unique_column_sets(db_engine, "commissions")

    def test_counsellor_slot_unique_per_parent(self, db_engine, db_tables):
        unique = _unique_column_sets(db_engine, "counsellors")
        assert ("parent_id", "slot") in unique
        assert ("user_id",) in unique
