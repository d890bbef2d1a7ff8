from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from shared.app_logging.logger import get_logger
from shared.database.models.user import User
from shared.database.session import Database
from shared.utils.errors import Conflict

logger = get_logger("newsdesk.crud.users")


class UserStore:
    """Persistence contract for identity-provider users."""

    def __init__(self, database: Database):
        self.database = database

    def get_by_external_id(self, external_id: str) -> Optional[User]:
        with self.database.session_scope() as session:
            return session.scalars(
                select(User).where(User.external_id == external_id)
            ).first()

    def create(
        self,
        external_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        if self.get_by_external_id(external_id) is not None:
            raise Conflict(f"User {external_id} already exists")

        with self.database.session_scope() as session:
            user = User(
                external_id=external_id,
                first_name=first_name,
                last_name=last_name,
                email=email or "",
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise Conflict(f"User {external_id} already exists")
            logger.info(f"User created: {external_id}")
            return user

    def delete_by_external_id(self, external_id: str) -> bool:
        """Delete the user if present. Returns False when there was nothing to delete."""
        with self.database.session_scope() as session:
            result = session.execute(delete(User).where(User.external_id == external_id))
            session.commit()
        deleted = result.rowcount > 0
        logger.info(f"User deleted: {external_id}" if deleted else f"No user to delete: {external_id}")
        return deleted
