from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional, List
from datetime import date
import enum
from portal.schemas.project import parse_date


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ON_LEAVE = "On Leave"


class EmployeeBase(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    position: str
    department: Optional[str] = None
    salary: float = 0
    hire_date: Optional[date] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    location: Optional[str] = None

    @field_validator('hire_date', mode='before')
    @classmethod
    def parse_hire_date(cls, v):
        return parse_date(v)

    @field_validator('salary', mode='before')
    @classmethod
    def salary_or_zero(cls, v):
        # Blank salary inputs are stored as 0
        if v is None or v == "":
            return 0
        return v


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    salary: Optional[float] = None
    hire_date: Optional[date] = None
    status: Optional[EmployeeStatus] = None
    location: Optional[str] = None


class Employee(EmployeeBase):
    id: int

    class Config:
        extra = "ignore"


class EmployeeStats(BaseModel):
    total: int
    active: int
    departments: int
    total_salary: float


class EmployeeDirectory(BaseModel):
    stats: EmployeeStats
    employees: List[Employee]
