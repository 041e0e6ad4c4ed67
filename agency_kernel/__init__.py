"""
Agency Kernel - status and cascade workflow core

Back-office rules for an education agency hierarchy:
- Role-scoped status transition tables
- Best-effort financial cascades (application -> transaction -> commission)
- Ownership-chain visibility (agent -> sub-agent -> counsellor)
- Counsellor capacity enforcement
"""

__version__ = "0.1.0"
