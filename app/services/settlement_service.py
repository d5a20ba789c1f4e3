from sqlalchemy.orm import Session
from typing import List, Optional
from app.models.settlements import Settlement
from app.services.group_service import get_group_or_404


def get_group_settlements(db: Session, group_id: str) -> List[Settlement]:
    """Get all settlements for a group, whatever their status"""
    get_group_or_404(db, group_id)
    return db.query(Settlement).filter(Settlement.group_id == group_id)\
        .order_by(Settlement.settled_at).all()


def get_settlement(db: Session, group_id: str, settlement_id: str) -> Optional[Settlement]:
    """Get a settlement by ID"""
    return db.query(Settlement).filter(
        Settlement.id == settlement_id, Settlement.group_id == group_id
    ).first()
