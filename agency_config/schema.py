"""
Engine settings schema (``agency_config.schema``).

Responsibility
--------------
Frozen dataclass describing every tunable the workflow engine reads at
runtime: the commission rate, the per-parent counsellor cap, the money
quantum, and the audit note texts written by the cascade dispatcher.

Architecture position
---------------------
**Config layer** -- pure data definitions.  No I/O.  Produced by
``agency_config.loader.parse_settings`` and consumed by
``agency_services``.

Invariants enforced
-------------------
* ``commission_rate`` is a ``Decimal`` in [0, 1].
* ``counsellor_cap`` is a positive ``int``.
* Note templates are ``str.format`` templates; placeholders available
  are listed on each field.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class EngineSettings:
    commission_rate: Decimal = Decimal("0.10")
    counsellor_cap: int = 2
    amount_quantum: Decimal = Decimal("0.01")
    # {application_id}, {amount}, {description}
    transaction_created_note: str = (
        "Transaction created automatically when application {application_id} "
        "was marked as Completed (first-year fee {amount})."
    )
    # {application_id}, {amount}, {previous_amount}
    transaction_updated_note: str = (
        "Application {application_id} marked as Completed again; "
        "amount set to {amount} (was {previous_amount})."
    )
    # {transaction_id}, {amount}, {rate}
    commission_created_note: str = (
        "Commission created automatically when transaction was marked as completed."
    )
    # {transaction_id}, {amount}, {previous_amount}, {rate}
    commission_updated_note: str = (
        "Transaction marked as completed again; commission set to {amount} "
        "(was {previous_amount})."
    )

    def as_dict(self) -> dict[str, str | int]:
        """Plain representation used for checksums and logging."""
        return {
            "commission_rate": str(self.commission_rate),
            "counsellor_cap": self.counsellor_cap,
            "amount_quantum": str(self.amount_quantum),
            "transaction_created_note": self.transaction_created_note,
            "transaction_updated_note": self.transaction_updated_note,
            "commission_created_note": self.commission_created_note,
            "commission_updated_note": self.commission_updated_note,
        }
