from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date
import enum
from portal.schemas.project import parse_date


class EntryKind(str, enum.Enum):
    REVENUE = "revenue"
    SPENDING = "spending"


class FinancialEntryCreate(BaseModel):
    date: date
    kind: EntryKind
    amount: float = Field(..., ge=0)
    category: Optional[str] = None

    @field_validator('date', mode='before')
    @classmethod
    def parse_entry_date(cls, v):
        return parse_date(v)


class FinancialEntry(FinancialEntryCreate):
    id: Optional[int] = None

    class Config:
        extra = "ignore"


class CategoryTotal(BaseModel):
    name: str
    value: float


class MonthlyPoint(BaseModel):
    month: str
    revenue: float
    spending: float


class FinancialSummary(BaseModel):
    time_range: str
    total_revenue: float
    total_spending: float
    net_profit: float
    profit_margin: float
    spending_by_category: List[CategoryTotal]
    monthly: List[MonthlyPoint]
