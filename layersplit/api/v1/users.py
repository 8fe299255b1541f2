"""/v1/users - wallet linking, profiles and per-user debt views"""

from typing import List
from fastapi import APIRouter, Depends

from layersplit.api.dependencies import get_directory, get_queries
from layersplit.api.v1.schemas import DebtResponse, LinkWalletRequest, StatusResponse, UserResponse
from layersplit.infrastructure.database.models import User
from layersplit.services.directory import Directory
from layersplit.services.queries import LedgerQueries
from layersplit.utils.display import short_address

router = APIRouter()


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        telegram_id=user.telegram_id,
        wallet_address=user.wallet_address,
        wallet_display=short_address(user.wallet_address),
        username=user.username,
        created_at=user.created_at,
    )


@router.post("/users/link", response_model=UserResponse)
def link_wallet(body: LinkWalletRequest, directory: Directory = Depends(get_directory)):
    """Link (or relink) a wallet address to a chat identity"""
    user = directory.link_wallet(body.telegram_id, body.wallet_address, body.username)
    return _user_response(user)


@router.get("/users/{handle}", response_model=UserResponse)
def get_user(handle: str, directory: Directory = Depends(get_directory)):
    return _user_response(directory.resolve_user(handle))


@router.get("/users/{handle}/debts", response_model=List[DebtResponse])
def get_debts(handle: str, queries: LedgerQueries = Depends(get_queries)):
    """Open debts owed BY the user, priced now"""
    return [DebtResponse.of(view.debt, view.quote) for view in queries.debts_owed(handle)]


@router.get("/users/{handle}/receivables", response_model=List[DebtResponse])
def get_receivables(handle: str, queries: LedgerQueries = Depends(get_queries)):
    """Open debts owed TO the user, priced now"""
    return [DebtResponse.of(view.debt, view.quote) for view in queries.receivables(handle)]


@router.get("/users/{handle}/status", response_model=StatusResponse)
def get_status(handle: str, queries: LedgerQueries = Depends(get_queries)):
    summary = queries.status(handle)
    return StatusResponse(
        total_owed=summary.total_owed.units,
        total_receivable=summary.total_receivable.units,
        owed=[DebtResponse.of(view.debt, view.quote) for view in summary.owed],
        receivable=[DebtResponse.of(view.debt, view.quote) for view in summary.receivable],
    )
