from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from esep.utils.errors import ConflictError, DuplicateError, StoreError
from esep.utils.logging import get_logger

logger = get_logger()


class BaseService:
    """Shared session handling for the database-backed services"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _commit(self, action: str, duplicate_code: str | None = None) -> None:
        """Commit the unit of work once, rolling back on any store failure"""
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            logger.warning(f"Stale write while trying to {action}: {str(e)}")
            raise ConflictError(
                f"Failed to {action}: the record was changed by someone else"
            ) from e
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error while trying to {action}: {str(e)}")
            if duplicate_code:
                raise DuplicateError(
                    f"Failed to {action}: already exists", duplicate_code
                ) from e
            raise StoreError(f"Failed to {action}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error while trying to {action}: {str(e)}")
            raise StoreError(f"Failed to {action}") from e
