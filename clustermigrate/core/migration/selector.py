"""Selector for KubernetesService records not yet managed by a cluster.

"Unmanaged" means the legacy record has no counterpart in the clusters
model: no Kubernetes platform linked to the record's project whose
api_url appears inside the record's properties. Only such records are
migrated. Records that a cluster already mirrors (clusters created while
the legacy service was still kept in sync) are left alone.
"""

import logging
from typing import List, NamedTuple, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError

from ...exceptions import SelectionFailure
from ..constants import SERVICE_CATEGORY_DEPLOYMENT, SERVICE_TYPE_KUBERNETES
from ..db import DatabaseManager
from ..db.models import ClusterProject, PlatformKubernetes, Service

logger = logging.getLogger(__name__)


class Candidate(NamedTuple):
    """Position of a legacy record in the selector's ordering."""
    project_id: int
    service_id: int


def unmanaged_kubernetes_services(after: Optional[Candidate] = None, limit: Optional[int] = None):
    """Build the candidate query.

    Args:
        after: Only return records ordered strictly after this position
        limit: Maximum number of rows

    Returns:
        Select of (project_id, service_id) ordered by project, then id.
    """
    # The endpoint lives inside the properties JSON text, so the match is
    # containment rather than equality.
    managed = (
        select(PlatformKubernetes.id)
        .join(ClusterProject, ClusterProject.cluster_id == PlatformKubernetes.cluster_id)
        .where(ClusterProject.project_id == Service.project_id)
        .where(Service.properties.contains(PlatformKubernetes.api_url))
        .correlate(Service)
        .exists()
    )

    stmt = (
        select(Service.project_id, Service.id)
        .where(Service.category == SERVICE_CATEGORY_DEPLOYMENT)
        .where(Service.type == SERVICE_TYPE_KUBERNETES)
        .where(Service.template.is_(False))
        .where(Service.project_id.isnot(None))
        .where(~managed)
        .order_by(Service.project_id, Service.id)
    )

    if after is not None:
        stmt = stmt.where(
            or_(
                Service.project_id > after.project_id,
                and_(Service.project_id == after.project_id, Service.id > after.service_id),
            )
        )
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


class UnmanagedServiceSelector:
    """Runs the candidate query against the database."""

    def __init__(self, db_manager: DatabaseManager):
        self._db = db_manager

    def fetch(self, after: Optional[Candidate] = None, limit: Optional[int] = None) -> List[Candidate]:
        """Return the next candidates, freshly evaluated.

        Raises:
            SelectionFailure: If the query cannot be executed
        """
        try:
            rows = self._db.query(unmanaged_kubernetes_services(after=after, limit=limit))
        except SQLAlchemyError as e:
            raise SelectionFailure(f"Unable to select unmanaged KubernetesService records: {e}") from e
        return [Candidate(project_id=row[0], service_id=row[1]) for row in rows]
