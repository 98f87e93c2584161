"""
Pydantic schemas for API requests
"""

from decimal import Decimal
from pydantic import BaseModel, Field


class AmountRequest(BaseModel):
    amount: Decimal = Field(..., description="Amount to move, truncated to 2 decimal places")


class DepositRequest(AmountRequest):
    pass


class WithdrawalRequest(AmountRequest):
    pass
