from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date
import enum
from portal.schemas.project import parse_date


class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveApplication(BaseModel):
    id: int
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    start_date: date
    end_date: date
    reason: Optional[str] = None
    document_path: Optional[str] = None
    status: LeaveStatus = LeaveStatus.PENDING

    class Config:
        extra = "ignore"

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def parse_leave_dates(cls, v):
        return parse_date(v)

    @field_validator('employee_id', mode='before')
    @classmethod
    def employee_id_as_text(cls, v):
        return None if v is None else str(v)


class LeaveDecision(BaseModel):
    status: LeaveStatus
