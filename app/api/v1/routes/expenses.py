from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.core.errors import NotFoundError
from app.db.database import get_db
from app.services.expense_service import (
    create_expense, get_expense, get_group_expenses, update_expense, delete_expense, to_expense_out
)
from app.schemas.expense_schema import ExpenseCreate, ExpenseUpdate, ExpenseOut, ExpenseCreated

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/groups/{group_id}", response_model=ExpenseCreated, status_code=201)
def create_new_expense(
    group_id: str,
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db)
):
    """Create a new expense"""
    expense = create_expense(db, group_id, expense_data)
    return ExpenseCreated(expense_id=expense.id)


@router.get("/groups/{group_id}", response_model=List[ExpenseOut])
def get_group_expenses_list(
    group_id: str,
    db: Session = Depends(get_db)
):
    """Get all expenses for a group"""
    return [to_expense_out(expense) for expense in get_group_expenses(db, group_id)]


@router.get("/groups/{group_id}/{expense_id}", response_model=ExpenseOut)
def get_expense_details(
    group_id: str,
    expense_id: str,
    db: Session = Depends(get_db)
):
    """Get an expense by ID"""
    expense = get_expense(db, group_id, expense_id)
    if not expense:
        raise NotFoundError("Expense")
    return to_expense_out(expense)


@router.put("/groups/{group_id}/{expense_id}", response_model=ExpenseOut)
def update_existing_expense(
    group_id: str,
    expense_id: str,
    update_data: ExpenseUpdate,
    db: Session = Depends(get_db)
):
    """Update an expense"""
    return to_expense_out(update_expense(db, group_id, expense_id, update_data))


@router.delete("/groups/{group_id}/{expense_id}")
def delete_existing_expense(
    group_id: str,
    expense_id: str,
    db: Session = Depends(get_db)
):
    """Delete an expense"""
    delete_expense(db, group_id, expense_id)
    return {"status": "success", "message": "Expense deleted successfully"}
