"""
Account endpoints
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import LedgerSystem, get_ledger_system
from .schemas import AmountRequest, DepositRequest, WithdrawalRequest
from ..errors import AccountNotFoundError, NotEnoughFundsError
from ..logging_config import get_logger, log_action
from ..money import MAX_AMOUNT


router = APIRouter()
logger = get_logger("ledger.api")

ACCOUNT_NOT_FOUND_DETAIL = "create account by making a valid deposit first"
NOT_ENOUGH_FUNDS_DETAIL = "not enough funds in account"


def parse_account_id(account_id: str) -> UUID:
    """Parse the path account id, answering 400 when it is not a UUID"""
    try:
        return UUID(account_id)
    except ValueError:
        log_action(
            logger, "error", "Error parsing account ID",
            action="parse_account_id", resource=f"account:{account_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"invalid account id: {account_id}"
        )


def require_valid_amount(request: AmountRequest) -> None:
    if request.amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="amount must be positive"
        )
    if request.amount > MAX_AMOUNT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"amount must not exceed {MAX_AMOUNT}"
        )


def clamp_page(page: Optional[int]) -> int:
    if page is None or page <= 0:
        return 0
    return page


def clamp_limit(limit: Optional[int], max_limit: int) -> int:
    if limit is None or limit <= 0 or limit > max_limit:
        return max_limit
    return limit


def internal_error(action: str, account_id: UUID, error: Exception) -> HTTPException:
    logger.exception(f"Error handling {action} for account {account_id}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error)
    )


@router.post("/{account_id}/deposit")
async def deposit(
    account_id: str,
    request: DepositRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Make a deposit, creating the account on first use"""
    account_uuid = parse_account_id(account_id)
    require_valid_amount(request)

    try:
        transaction = system.transaction_manager.add_deposit(account_uuid, request.amount)
    except Exception as e:
        raise internal_error("deposit", account_uuid, e)

    return {"transaction": transaction.to_dict()}


@router.post("/{account_id}/withdrawal")
async def withdrawal(
    account_id: str,
    request: WithdrawalRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Make a withdrawal from an existing account"""
    account_uuid = parse_account_id(account_id)
    require_valid_amount(request)

    try:
        transaction = system.transaction_manager.add_withdrawal(account_uuid, request.amount)
    except AccountNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ACCOUNT_NOT_FOUND_DETAIL)
    except NotEnoughFundsError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=NOT_ENOUGH_FUNDS_DETAIL)
    except Exception as e:
        raise internal_error("withdrawal", account_uuid, e)

    return {"transaction": transaction.to_dict()}


@router.get("/{account_id}/transactions")
async def get_transactions(
    account_id: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get transaction history for an account, newest first"""
    account_uuid = parse_account_id(account_id)
    page = clamp_page(page)
    limit = clamp_limit(limit, system.max_page_limit)

    try:
        transactions, next_page = system.transaction_manager.get_transactions(
            account_uuid, page, limit
        )
    except AccountNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ACCOUNT_NOT_FOUND_DETAIL)
    except Exception as e:
        raise internal_error("transactions", account_uuid, e)

    return {
        "transactions": [txn.to_dict() for txn in transactions],
        "next_page": next_page
    }


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get account balance, creating the account on first use"""
    account_uuid = parse_account_id(account_id)

    try:
        account = system.transaction_manager.get_account(account_uuid)
    except Exception as e:
        raise internal_error("account lookup", account_uuid, e)

    return {"account": account.to_dict()}
