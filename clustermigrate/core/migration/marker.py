"""Marks migrated legacy records.

The flag is informational: it lets operators tell a service disabled by
this migration apart from one disabled by hand. Exclusion from later runs
comes from the selector's platform check, not from this flag.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import MarkerFailure
from ..constants import MIGRATED_PROPERTY
from ..db import DatabaseManager
from ..db.models import Service

logger = logging.getLogger(__name__)


class MigratedMarker:
    """Deactivates a legacy record and records ``migrated: true`` in its properties."""

    def __init__(self, db_manager: DatabaseManager):
        self._db = db_manager

    def mark(self, service_id: int) -> None:
        """Flag one record.

        Raises:
            MarkerFailure: If the record cannot be updated
        """
        try:
            self._db.execute_transaction(lambda session: self._flag(session, service_id))
        except (SQLAlchemyError, ValueError) as e:
            raise MarkerFailure(service_id, e) from e

    @staticmethod
    def _flag(session: Session, service_id: int) -> None:
        service = session.get(Service, service_id)
        if service is None:
            raise ValueError("record no longer exists")

        bag = service.properties_bag
        bag[MIGRATED_PROPERTY] = True
        service.properties_bag = bag
        service.active = False
