"""Shared builders for migration tests (in-memory SQLite)."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from clustermigrate.core.constants import (
    LEGACY_TOKEN_CONTEXT,
    SERVICE_CATEGORY_DEPLOYMENT,
    SERVICE_TYPE_KUBERNETES,
)
from clustermigrate.core.db import (
    Cluster,
    DatabaseManager,
    PlatformType,
    Project,
    ProviderType,
    Service,
)
from clustermigrate.core.security import TokenEncryptor

KEY_BASE = "test-db-key-base-0123456789"
TOKEN = "plain-kube-token-9f8e7d6c5b4a"


def make_db() -> DatabaseManager:
    """DatabaseManager over a fresh in-memory SQLite database with all tables."""
    db = DatabaseManager(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db.init_db()
    return db


def make_encryptor() -> TokenEncryptor:
    return TokenEncryptor(KEY_BASE)


def add_project(db: DatabaseManager, name: str = "project") -> int:
    with db.get_session() as session:
        project = Project(name=name)
        session.add(project)
        session.flush()
        return project.id


def add_kubernetes_service(
    db: DatabaseManager,
    encryptor: TokenEncryptor,
    project_id: Optional[int],
    api_url: Optional[str] = "https://h1",
    token: Optional[str] = TOKEN,
    ca_pem: Optional[str] = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----",
    namespace: Optional[str] = "production",
    active: bool = True,
    template: bool = False,
    category: str = SERVICE_CATEGORY_DEPLOYMENT,
    service_type: str = SERVICE_TYPE_KUBERNETES,
    extra_properties: Optional[dict] = None,
) -> int:
    """Insert a legacy service row; the token is stored encrypted."""
    bag = {
        "api_url": api_url,
        "ca_pem": ca_pem,
        "namespace": namespace,
        "token": encryptor.encrypt(token, LEGACY_TOKEN_CONTEXT),
    }
    bag.update(extra_properties or {})

    with db.get_session() as session:
        service = Service(
            project_id=project_id,
            type=service_type,
            category=category,
            template=template,
            active=active,
        )
        service.properties_bag = bag
        session.add(service)
        session.flush()
        return service.id


def add_managed_cluster(db: DatabaseManager, project_id: int, api_url: str) -> int:
    """Insert a cluster that already manages ``api_url`` for the project."""
    with db.get_session() as session:
        cluster = Cluster.build_with_platform(
            enabled=True,
            user_id=None,
            name="existing",
            provider_type=int(ProviderType.USER),
            platform_type=int(PlatformType.KUBERNETES),
            projects=[session.get(Project, project_id)],
            platform_kubernetes_attributes={"api_url": api_url},
        )
        session.add(cluster)
        session.flush()
        return cluster.id


def count(db: DatabaseManager, model) -> int:
    with db.get_session() as session:
        return session.execute(select(func.count()).select_from(model)).scalar_one()


def load(db: DatabaseManager, model, pk):
    with db.get_session() as session:
        return session.get(model, pk)


def load_all(db: DatabaseManager, model):
    with db.get_session() as session:
        return list(session.execute(select(model)).scalars().all())
