"""
Procedure modules.

Importing this package registers every procedure.
"""

from app.api.procedures import admin, promotion, staking, team, vouchers, wallet  # noqa: F401
