import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import List, Optional
from app.core.errors import NotFoundError, ValidationError
from app.models.groups import Group, GroupMember
from app.schemas.group_schema import GroupCreate

logger = logging.getLogger(__name__)


def create_group(db: Session, group_data: GroupCreate) -> Group:
    """Create a new group with its initial members"""
    members = list(dict.fromkeys(group_data.members))

    group = Group(name=group_data.name)
    db.add(group)
    db.flush()

    for user_id in members:
        db.add(GroupMember(group_id=group.id, user_id=user_id))

    db.commit()
    db.refresh(group)
    logger.info(f"Group created successfully: {group.id} ({group.name}) with {len(members)} members")
    return group


def get_group(db: Session, group_id: str) -> Optional[Group]:
    """Get a group by ID"""
    return db.query(Group).filter(Group.id == group_id).first()


def get_group_or_404(db: Session, group_id: str) -> Group:
    group = get_group(db, group_id)
    if not group:
        raise NotFoundError("Group")
    return group


def list_groups(db: Session) -> List[Group]:
    """Get all groups"""
    return db.query(Group).order_by(Group.created_at).all()


def get_group_members(db: Session, group_id: str) -> List[GroupMember]:
    """Get all members of a group"""
    return db.query(GroupMember).filter(GroupMember.group_id == group_id)\
        .order_by(GroupMember.joined_at, GroupMember.user_id).all()


def is_group_member(db: Session, group_id: str, user_id: str) -> bool:
    """Check if user is a member of group"""
    member = db.query(GroupMember).filter(
        and_(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
    ).first()
    return member is not None


def add_member_to_group(db: Session, group_id: str, user_id: str) -> GroupMember:
    """Add a member to a group"""
    get_group_or_404(db, group_id)

    if is_group_member(db, group_id, user_id):
        raise ValidationError("User is already a member of this group")

    member = GroupMember(group_id=group_id, user_id=user_id)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Added member {user_id} to group {group_id}")
    return member
