"""Migration engine: KubernetesService records -> clusters.

Pipeline per record, one record at a time:
  Selector  - fresh query for the next unmanaged KubernetesService
  Transform - cluster + Kubernetes platform + project link in one unit of work
  Mark      - deactivate the legacy record and flag it as migrated

A transform failure leaves the record untouched and moves on; it will be
selected again on the next run. A marker failure is logged and recorded
but does not undo the transform. Reversal is not supported: ``reverse()``
does nothing.
"""

import logging

from ...exceptions import MarkerFailure, TransformFailure
from ..constants import DEFAULT_BATCH_SIZE
from ..db import DatabaseManager
from ..security import TokenEncryptor
from .batching import each_candidate
from .marker import MigratedMarker
from .report import MigrationReport, RecordState
from .selector import Candidate, UnmanagedServiceSelector
from .transformer import ServiceTransformer

logger = logging.getLogger(__name__)


class KubernetesServiceMigration:
    """Moves unmanaged KubernetesService records into the clusters model."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        encryptor: TokenEncryptor,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._selector = UnmanagedServiceSelector(db_manager)
        self._transformer = ServiceTransformer(db_manager, encryptor)
        self._marker = MigratedMarker(db_manager)
        self._batch_size = batch_size

    def run(self) -> MigrationReport:
        """Migrate every unmanaged record.

        Raises:
            SelectionFailure: If candidates cannot be queried
        """
        report = MigrationReport()
        logger.info(f"Starting KubernetesService migration (batch_size={self._batch_size})")

        for candidate in each_candidate(self._selector, self._batch_size):
            report.candidates_found += 1
            self._migrate(candidate, report)

        logger.info(f"KubernetesService migration finished: {report.summary()}")
        return report

    @staticmethod
    def reverse() -> None:
        """Migrated clusters are kept; there is nothing to undo."""
        logger.info("KubernetesService migration has no reverse step; nothing to do")

    def _migrate(self, candidate: Candidate, report: MigrationReport) -> None:
        service_id = candidate.service_id
        logger.debug(f"Service {service_id} (project {candidate.project_id}): {RecordState.SELECTED.value}")

        logger.debug(f"Service {service_id}: {RecordState.TRANSFORMING.value}")
        try:
            cluster_id = self._transformer.transform(service_id)
        except TransformFailure as e:
            report.record_failure(e)
            logger.error(f"Service {service_id}: {RecordState.TRANSFORM_FAILED.value}: {e.cause}")
            return

        report.migrated += 1
        logger.info(f"Service {service_id}: {RecordState.TRANSFORMED.value} into cluster {cluster_id}")

        try:
            self._marker.mark(service_id)
        except MarkerFailure as e:
            report.record_failure(e)
            logger.warning(f"Service {service_id}: {RecordState.MARK_FAILED.value}: {e.cause}")
            return

        logger.debug(f"Service {service_id}: {RecordState.MARKED.value}")
