"""
ORM models. Importing this package registers every table on `Base.metadata`.
"""

from claimbot.database.models.claim_record import ClaimRecord
from claimbot.database.models.code import Code

__all__ = ["Code", "ClaimRecord"]
