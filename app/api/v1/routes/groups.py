from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.db.database import get_db
from app.services.group_service import (
    create_group, get_group_or_404, list_groups, add_member_to_group, get_group_members
)
from app.services.ledger_service import LedgerService, get_ledger_service
from app.services.summary_service import build_summary_data
from app.schemas.group_schema import (
    GroupCreate, GroupOut, GroupMemberCreate, GroupMemberOut, GroupWithMembers, GroupSummaryData
)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("/", response_model=GroupOut, status_code=201)
def create_new_group(
    group_data: GroupCreate,
    db: Session = Depends(get_db)
):
    """Create a new group"""
    return create_group(db, group_data)


@router.get("/", response_model=List[GroupOut])
def get_all_groups(db: Session = Depends(get_db)):
    """Get all groups"""
    return list_groups(db)


@router.get("/{group_id}", response_model=GroupWithMembers)
def get_group_details(
    group_id: str,
    db: Session = Depends(get_db)
):
    """Get group details with members"""
    group = get_group_or_404(db, group_id)
    members = get_group_members(db, group.id)
    return GroupWithMembers(
        id=group.id,
        name=group.name,
        created_at=group.created_at,
        members=[GroupMemberOut.model_validate(member) for member in members]
    )


@router.post("/{group_id}/members", response_model=GroupMemberOut, status_code=201)
def add_group_member(
    group_id: str,
    member_data: GroupMemberCreate,
    db: Session = Depends(get_db)
):
    """Add a member to a group"""
    return add_member_to_group(db, group_id, member_data.user_id)


@router.get("/{group_id}/members", response_model=List[GroupMemberOut])
def get_group_members_list(
    group_id: str,
    db: Session = Depends(get_db)
):
    """Get all members of a group"""
    get_group_or_404(db, group_id)
    return get_group_members(db, group_id)


@router.get("/{group_id}/summary-data", response_model=GroupSummaryData)
def get_group_summary_data(
    group_id: str,
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Get the aggregates used to generate a natural-language group summary"""
    group = get_group_or_404(db, group_id)
    return build_summary_data(ledger, group.id, group.name)
