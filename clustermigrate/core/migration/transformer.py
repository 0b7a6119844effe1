"""Transformation of one legacy KubernetesService into a cluster.

The cluster, its Kubernetes platform and the project association are
written in a single unit of work: either all three rows exist afterwards
or none do.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import DecryptionError, TransformFailure
from ..constants import (
    DEFAULT_KUBERNETES_SERVICE_CLUSTER_NAME,
    LEGACY_TOKEN_CONTEXT,
    PLATFORM_TOKEN_CONTEXT,
)
from ..db import DatabaseManager
from ..db.models import Cluster, PlatformType, ProviderType, Service
from ..security import TokenEncryptor

logger = logging.getLogger(__name__)


def validate_api_url(api_url: Optional[str]) -> str:
    """Return ``api_url`` if it is an absolute http(s) URL, else raise ValueError."""
    if not api_url or not isinstance(api_url, str):
        raise ValueError("api_url is missing")
    parsed = urlparse(api_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"api_url is not an absolute http(s) URL: {api_url!r}")
    return api_url


def optional_text(value, field: str) -> Optional[str]:
    """Return ``value`` if it is text or None, else raise ValueError."""
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{field} must be text, got {type(value).__name__}")
    return value


class ServiceTransformer:
    """Creates the cluster graph for a legacy KubernetesService record."""

    def __init__(self, db_manager: DatabaseManager, encryptor: TokenEncryptor):
        self._db = db_manager
        self._encryptor = encryptor

    def transform(self, service_id: int) -> int:
        """Migrate one record.

        Returns:
            ID of the created cluster

        Raises:
            TransformFailure: If the record cannot be mapped or persisted.
                Nothing is written in that case.
        """
        try:
            return self._db.execute_transaction(
                lambda session: self._create_cluster(session, service_id)
            )
        except TransformFailure:
            raise
        except (SQLAlchemyError, DecryptionError, ValueError) as e:
            raise TransformFailure(service_id, e) from e

    def _create_cluster(self, session: Session, service_id: int) -> int:
        service = session.get(Service, service_id)
        if service is None:
            raise TransformFailure(service_id, "record no longer exists")
        if service.project is None:
            raise TransformFailure(service_id, "record is not attached to a project")

        api_url = validate_api_url(service.api_url)
        # The selector excludes migrated records by finding api_url inside the
        # stored properties text; an escaped copy would never match.
        if api_url not in (service.properties or ""):
            raise ValueError("api_url is not stored literally in services.properties")

        cluster = Cluster.build_with_platform(
            enabled=service.active,
            user_id=None,  # KubernetesService has no owner
            name=DEFAULT_KUBERNETES_SERVICE_CLUSTER_NAME,
            provider_type=int(ProviderType.USER),
            platform_type=int(PlatformType.KUBERNETES),
            projects=[service.project],
            platform_kubernetes_attributes={
                "api_url": api_url,
                "ca_cert": optional_text(service.ca_pem, "ca_pem"),
                "namespace": optional_text(service.namespace, "namespace"),
                "username": None,
                "encrypted_password": None,
                "encrypted_token": self._encryptor.reencrypt(
                    service.encrypted_token, LEGACY_TOKEN_CONTEXT, PLATFORM_TOKEN_CONTEXT
                ),
            },
        )
        session.add(cluster)
        session.flush()

        logger.debug(f"Service {service_id}: built cluster {cluster.id} for project {service.project_id}")
        return cluster.id
