import logging
from pathlib import Path
from typing import List, Optional

from portal.core.config import settings
from portal.core.exceptions import ActionNotPermittedError, BackendError, ValidationFailedError
from portal.schemas.auth import SessionContext
from portal.schemas.leave import LeaveApplication, LeaveStatus
from portal.services.backend_client import BackendClient, UploadedDocument

logger = logging.getLogger(__name__)


def validate_document(filename: str, content: bytes) -> None:
    """Check a leave document's extension and size before it is forwarded."""
    extension = Path(filename).suffix.lower().lstrip(".")
    allowed = [ext.strip() for ext in settings.ALLOWED_EXTENSIONS.split(",")]
    if extension not in allowed:
        raise ValidationFailedError(
            f"File type not allowed. Allowed types: {', '.join(allowed)}"
        )
    if len(content) > settings.MAX_UPLOAD_SIZE:
        max_mb = settings.MAX_UPLOAD_SIZE / (1024 * 1024)
        raise ValidationFailedError(f"File too large. Maximum size: {max_mb:.0f}MB")


class LeaveService:
    def my_leaves(self, client: BackendClient, session: SessionContext) -> List[LeaveApplication]:
        return [LeaveApplication.model_validate(item) for item in client.my_leaves(session)]

    def pending_review(self, client: BackendClient, session: SessionContext) -> List[LeaveApplication]:
        return [LeaveApplication.model_validate(item) for item in client.admin_leaves(session)]

    def decide(
        self,
        client: BackendClient,
        session: SessionContext,
        leave_id: int,
        status: LeaveStatus
    ) -> List[LeaveApplication]:
        """Approve or reject a pending leave, then return the refreshed list."""
        if status == LeaveStatus.PENDING:
            raise ValidationFailedError("Status must be APPROVED or REJECTED")

        leaves = self.pending_review(client, session)
        leave = next((item for item in leaves if item.id == leave_id), None)
        if leave is None:
            raise BackendError("Leave application not found", status_code=404)
        if leave.status != LeaveStatus.PENDING:
            raise ActionNotPermittedError(f"Leave application is already {leave.status.value}")

        client.set_leave_status(session, leave_id, status.value)
        logger.info(f"Leave {leave_id} {status.value} by {session.name or session.role}")
        return self.pending_review(client, session)


def as_document(filename: Optional[str], content: Optional[bytes], content_type: Optional[str]) -> Optional[UploadedDocument]:
    if not filename or content is None:
        return None
    validate_document(filename, content)
    return filename, content, content_type or "application/octet-stream"


# Singleton instance
leave_service = LeaveService()
