"""migrate kubernetes service to clusters

Post-deploy data migration: copies unmanaged KubernetesService records into
clusters / cluster_platforms_kubernetes / cluster_projects and deactivates
the legacy records. Runs without downtime; each record commits on its own.

The services, projects, clusters, cluster_platforms_kubernetes and
cluster_projects tables are created by the application's schema revisions
and are assumed to exist; this revision only moves data.

Revision ID: c4e1a9d27b3f
Revises:
Create Date: 2026-10-18 10:12:31.402118

"""
import logging
from typing import Sequence, Union

from alembic import op

from clustermigrate.core.db import DatabaseManager
from clustermigrate.core.migration import KubernetesServiceMigration
from clustermigrate.core.security import TokenEncryptor
from clustermigrate.setting import get_settings


# revision identifiers, used by Alembic.
revision: str = 'c4e1a9d27b3f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

logger = logging.getLogger(f"alembic.runtime.migration.{revision}")


def upgrade() -> None:
    settings = get_settings()
    # Separate connections from alembic's so every record commits independently
    db_manager = DatabaseManager(engine=op.get_bind().engine)
    migration = KubernetesServiceMigration(
        db_manager,
        TokenEncryptor(settings.require_db_key_base()),
        batch_size=settings.batch_size,
    )
    report = migration.run()
    if not report.succeeded:
        logger.warning(f"KubernetesService records left for manual follow-up: {report.summary()}")


def downgrade() -> None:
    KubernetesServiceMigration.reverse()
