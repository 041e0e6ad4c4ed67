"""Selectors for the agency kernel (read side)."""

from agency_kernel.selectors.record_selector import RecordSelector

__all__ = ["RecordSelector"]
