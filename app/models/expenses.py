import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, DECIMAL, Text, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.database import Base


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    paid_by = Column(String, nullable=False, index=True)  # Reference to user service
    amount = Column(DECIMAL(12, 4), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, default="uncategorized")
    split_type = Column(String(20), nullable=False)  # equal, percentage, exact_amounts
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    participants = relationship(
        "ExpenseParticipant",
        cascade="all, delete-orphan",
        order_by="ExpenseParticipant.position",
        lazy="selectin",
    )


class ExpenseParticipant(Base):
    __tablename__ = "expense_participants"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)  # Reference to user service
    position = Column(Integer, nullable=False, default=0)
    # Percentage or exact amount depending on the expense split type; NULL for equal splits
    value = Column(DECIMAL(12, 4), nullable=True)
