import logging
from typing import List, Optional

from portal.schemas.auth import SessionContext
from portal.schemas.employee import (
    Employee, EmployeeCreate, EmployeeDirectory, EmployeeStats, EmployeeStatus, EmployeeUpdate
)
from portal.services.backend_client import BackendClient

logger = logging.getLogger(__name__)

DEPARTMENTS = ['Engineering', 'Product', 'Design', 'Marketing', 'HR', 'Finance', 'Sales']


def employee_stats(employees: List[Employee]) -> EmployeeStats:
    return EmployeeStats(
        total=len(employees),
        active=sum(1 for e in employees if e.status == EmployeeStatus.ACTIVE),
        departments=len({e.department for e in employees}),
        total_salary=sum(e.salary or 0 for e in employees),
    )


def filter_employees(
    employees: List[Employee],
    search: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None
) -> List[Employee]:
    """Search name, email and position; department and status must match exactly."""
    needle = (search or "").lower()
    result = []
    for e in employees:
        matches_search = (
            needle in e.name.lower()
            or needle in e.email.lower()
            or needle in e.position.lower()
        )
        matches_department = not department or e.department == department
        matches_status = not status or e.status.value == status
        if matches_search and matches_department and matches_status:
            result.append(e)
    return result


class EmployeeService:
    def list_employees(self, client: BackendClient, session: SessionContext) -> List[Employee]:
        return [Employee.model_validate(e) for e in client.list_employees(session)]

    def directory(
        self,
        client: BackendClient,
        session: SessionContext,
        search: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None
    ) -> EmployeeDirectory:
        employees = self.list_employees(client, session)
        return EmployeeDirectory(
            stats=employee_stats(employees),
            employees=filter_employees(employees, search, department, status),
        )

    def create_employee(self, client: BackendClient, session: SessionContext, data: EmployeeCreate) -> Employee:
        created = client.create_employee(session, data.model_dump(mode="json"))
        employee = Employee.model_validate(created)
        logger.info(f"Employee {employee.id} ({employee.name}) created")
        return employee

    def update_employee(
        self, client: BackendClient, session: SessionContext, employee_id: int, data: EmployeeUpdate
    ) -> Employee:
        updated = client.update_employee(session, employee_id, data.model_dump(mode="json", exclude_unset=True))
        return Employee.model_validate(updated)

    def delete_employee(self, client: BackendClient, session: SessionContext, employee_id: int):
        client.delete_employee(session, employee_id)
        logger.info(f"Employee {employee_id} deleted")


# Singleton instance
employee_service = EmployeeService()
