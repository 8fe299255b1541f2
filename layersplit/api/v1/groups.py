"""/v1/groups - chat groups, membership and group bills"""

from typing import List
from fastapi import APIRouter, Depends

from layersplit.api.dependencies import get_directory, get_queries
from layersplit.api.v1.schemas import (
    AddMemberRequest,
    BillListItem,
    GroupResponse,
    GroupUpsertRequest,
    MemberResponse,
    UserSummary,
)
from layersplit.infrastructure.database.models import Group
from layersplit.services.directory import Directory
from layersplit.services.queries import LedgerQueries

router = APIRouter()


def _group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=str(group.id),
        telegram_group_id=group.telegram_group_id,
        name=group.name,
        created_at=group.created_at,
        member_count=len(group.members),
    )


@router.post("/groups", response_model=GroupResponse)
def upsert_group(body: GroupUpsertRequest, directory: Directory = Depends(get_directory)):
    """Create or rename a group; the creator becomes admin"""
    group = directory.upsert_group(body.telegram_group_id, body.name, body.creator)
    return _group_response(group)


@router.get("/groups/{telegram_group_id}", response_model=GroupResponse)
def get_group(telegram_group_id: int, directory: Directory = Depends(get_directory)):
    return _group_response(directory.get_group(telegram_group_id))


@router.post("/groups/{telegram_group_id}/members", response_model=MemberResponse)
def add_member(
    telegram_group_id: int,
    body: AddMemberRequest,
    directory: Directory = Depends(get_directory),
):
    membership = directory.add_member(telegram_group_id, body.telegram_id, body.is_admin, body.username)
    return MemberResponse(user=UserSummary.of(membership.user), is_admin=membership.is_admin)


@router.get("/groups/{telegram_group_id}/members", response_model=List[MemberResponse])
def list_members(telegram_group_id: int, directory: Directory = Depends(get_directory)):
    return [
        MemberResponse(user=UserSummary.of(member.user), is_admin=member.is_admin)
        for member in directory.list_members(telegram_group_id)
    ]


@router.get("/groups/{telegram_group_id}/bills", response_model=List[BillListItem])
def list_group_bills(telegram_group_id: int, queries: LedgerQueries = Depends(get_queries)):
    return [
        BillListItem(
            id=str(bill.id),
            title=bill.title,
            total_amount=bill.total_amount,
            split_kind=bill.kind,
            status=bill.status,
            is_settled=bill.is_settled,
            creator=UserSummary.of(bill.creator),
            created_at=bill.created_at,
            debt_count=len(bill.debts),
        )
        for bill in queries.list_group_bills(telegram_group_id)
    ]
