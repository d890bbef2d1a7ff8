"""
Identity-provider webhook handling.
Translates ``user.created`` / ``user.deleted`` events into user store calls.
"""
from typing import Any, Dict

from pydantic import ValidationError

from shared.app_logging.logger import get_logger
from shared.database.crud.users import UserStore
from shared.schemas.webhooks import UserData, WebhookEvent
from shared.utils.errors import AppError, BadRequest, InternalError

logger = get_logger("newsdesk.webhooks")

USER_CREATED = "user.created"
USER_DELETED = "user.deleted"


class WebhookHandler:
    """Dispatches identity-provider events on their ``type`` field."""

    def __init__(self, users: UserStore):
        self.users = users

    def handle(self, payload: Any) -> Dict[str, Any]:
        """
        Process one webhook delivery.

        Args:
            payload: Decoded JSON body

        Returns:
            Success body ``{"success": True, "message": ...}``

        Raises:
            BadRequest: missing user id or unknown event type
            InternalError: the user store failed
        """
        try:
            event = WebhookEvent.model_validate(payload)
            data = UserData.model_validate(event.data)
        except ValidationError as e:
            raise BadRequest(f"Malformed webhook payload: {e.error_count()} error(s)")

        if event.type == USER_CREATED:
            return self._user_created(data)
        if event.type == USER_DELETED:
            return self._user_deleted(data)
        raise BadRequest("Unknown event type")

    def _user_created(self, data: UserData) -> Dict[str, Any]:
        if not data.id:
            raise BadRequest("clerkUserId is required")
        try:
            self.users.create(
                external_id=data.id,
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.primary_email,
            )
        except Exception as e:
            logger.error(f"Error creating user {data.id}: {e}")
            raise InternalError(e.message if isinstance(e, AppError) else str(e))
        return {"success": True, "message": "User created successfully"}

    def _user_deleted(self, data: UserData) -> Dict[str, Any]:
        if not data.id:
            raise BadRequest("clerkUserId is required")
        try:
            self.users.delete_by_external_id(data.id)
        except Exception as e:
            logger.error(f"Error deleting user {data.id}: {e}")
            raise InternalError(str(e))
        return {"success": True, "message": "User deleted successfully"}
