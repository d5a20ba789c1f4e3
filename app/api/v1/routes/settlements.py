from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.core.errors import NotFoundError
from app.db.database import get_db
from app.services.ledger_service import LedgerService, get_ledger_service
from app.services.settlement_service import get_group_settlements, get_settlement
from app.schemas.ledger_schema import Balance, SettlementSuggestion
from app.schemas.settlement_schema import SettlementCreate, SettlementOut, SettlementRecorded

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/groups/{group_id}", response_model=SettlementRecorded, status_code=201)
def record_new_settlement(
    group_id: str,
    settlement_data: SettlementCreate,
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Record a payment that settles an outstanding balance"""
    settlement_id = ledger.record_settlement(
        group_id,
        settlement_data.from_user_id,
        settlement_data.to_user_id,
        settlement_data.amount
    )
    return SettlementRecorded(settlement_id=settlement_id)


@router.get("/groups/{group_id}", response_model=List[SettlementOut])
def get_group_settlements_list(
    group_id: str,
    db: Session = Depends(get_db)
):
    """Get all settlements for a group"""
    return get_group_settlements(db, group_id)


@router.get("/groups/{group_id}/balances", response_model=List[Balance])
def get_group_balances(
    group_id: str,
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Get who owes whom in a group"""
    return ledger.get_balances(group_id)


@router.get("/groups/{group_id}/optimize", response_model=SettlementSuggestion)
def get_optimized_settlements(
    group_id: str,
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Get optimized settlement suggestions"""
    return ledger.suggest_settlement(group_id)


@router.get("/groups/{group_id}/{settlement_id}", response_model=SettlementOut)
def get_settlement_details(
    group_id: str,
    settlement_id: str,
    db: Session = Depends(get_db)
):
    """Get a settlement by ID"""
    settlement = get_settlement(db, group_id, settlement_id)
    if not settlement:
        raise NotFoundError("Settlement")
    return settlement
