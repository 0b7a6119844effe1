"""
SQLAlchemy ORM Models for the KubernetesService migration

Legacy integration and cluster platform models:
- User: Account that may own a cluster
- Project: Owner of legacy services and cluster associations
- Service: Legacy per-project integration record (KubernetesService et al.)
- Cluster: User-provided or cloud-provisioned cluster
- PlatformKubernetes: Kubernetes endpoint settings owned by a cluster (1:1)
- ClusterProject: Join between clusters and projects
"""

import enum
import json
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, Text, TIMESTAMP, ForeignKey, Boolean,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


class ProviderType(enum.IntEnum):
    """clusters.provider_type values."""
    USER = 0
    GCP = 1


class PlatformType(enum.IntEnum):
    """clusters.platform_type values."""
    KUBERNETES = 1


# =============================================================================
# Core Models
# =============================================================================

class User(Base):
    """User account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


class Project(Base):
    """Project owning legacy services and associated clusters."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    # Relationships
    services = relationship("Service", back_populates="project")
    cluster_projects = relationship("ClusterProject", back_populates="project")
    clusters = relationship("Cluster", secondary="cluster_projects", viewonly=True)

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"


# =============================================================================
# Legacy Integration Model
# =============================================================================

class Service(Base):
    """Legacy per-project integration record.

    Integration settings are stored as a JSON object in the ``properties``
    text column. For KubernetesService the keys are ``api_url``, ``ca_pem``,
    ``namespace`` and ``token`` (ciphertext under the legacy token context).
    """
    __tablename__ = "services"
    __table_args__ = (
        Index('idx_services_project', 'project_id'),
        Index('idx_services_category_type', 'category', 'type'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)  # NULL for templates
    type = Column(String(255))                                  # KubernetesService, SlackService, ...
    category = Column(String(255), default='common', nullable=False)  # deployment, chat, ci, ...
    template = Column(Boolean, default=False, nullable=False)
    active = Column(Boolean, default=False, nullable=False)
    properties = Column(Text, default='{}')                     # JSON object, searched with LIKE
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="services")

    @property
    def properties_bag(self) -> dict:
        """Parsed ``properties``. Raises ValueError on malformed JSON."""
        if not self.properties:
            return {}
        bag = json.loads(self.properties)
        if not isinstance(bag, dict):
            raise ValueError("services.properties is not a JSON object")
        return bag

    @properties_bag.setter
    def properties_bag(self, value: dict) -> None:
        # Literal characters keep api_url matchable by the selector's LIKE
        self.properties = json.dumps(value, ensure_ascii=False)

    @property
    def api_url(self):
        return self.properties_bag.get("api_url")

    @property
    def ca_pem(self):
        return self.properties_bag.get("ca_pem")

    @property
    def namespace(self):
        return self.properties_bag.get("namespace")

    @property
    def encrypted_token(self):
        return self.properties_bag.get("token")

    def __repr__(self):
        return f"<Service(id={self.id}, type='{self.type}', project_id={self.project_id}, active={self.active})>"


# =============================================================================
# Cluster Models
# =============================================================================

class Cluster(Base):
    """Cluster attached to one or more projects."""
    __tablename__ = "clusters"
    __table_args__ = (
        Index('idx_clusters_user', 'user_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    enabled = Column(Boolean, default=True)
    name = Column(String(255), nullable=False)
    provider_type = Column(Integer, nullable=False)         # ProviderType
    platform_type = Column(Integer, nullable=False)         # PlatformType
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User")
    platform_kubernetes = relationship(
        "PlatformKubernetes", back_populates="cluster", uselist=False, cascade="all, delete-orphan"
    )
    cluster_projects = relationship("ClusterProject", back_populates="cluster", cascade="all, delete-orphan")
    projects = relationship("Project", secondary="cluster_projects", viewonly=True)

    @classmethod
    def build_with_platform(cls, *, projects, platform_kubernetes_attributes, **attributes) -> "Cluster":
        """Build a cluster together with its Kubernetes platform and project links.

        Nothing is persisted; adding the returned cluster to a session
        cascades to the platform and the association rows so they flush
        as one graph.
        """
        cluster = cls(**attributes)
        cluster.platform_kubernetes = PlatformKubernetes(**platform_kubernetes_attributes)
        cluster.cluster_projects = [ClusterProject(project=project) for project in projects]
        return cluster

    def __repr__(self):
        return f"<Cluster(id={self.id}, name='{self.name}', provider={self.provider_type}, enabled={self.enabled})>"


class PlatformKubernetes(Base):
    """Kubernetes endpoint settings for a cluster.

    ``encrypted_token`` and ``encrypted_password`` hold ciphertext under the
    cluster_platforms_kubernetes key contexts.
    """
    __tablename__ = "cluster_platforms_kubernetes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cluster_id = Column(Integer, ForeignKey("clusters.id", ondelete="CASCADE"), nullable=False, unique=True)
    api_url = Column(Text, nullable=False)
    ca_cert = Column(Text)
    namespace = Column(String(255))
    username = Column(String(255))
    encrypted_password = Column(Text)
    encrypted_token = Column(Text)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    cluster = relationship("Cluster", back_populates="platform_kubernetes")

    def __repr__(self):
        return f"<PlatformKubernetes(id={self.id}, cluster_id={self.cluster_id}, api_url='{self.api_url}')>"


class ClusterProject(Base):
    """Association between a cluster and a project."""
    __tablename__ = "cluster_projects"
    __table_args__ = (
        Index('idx_cluster_projects_project', 'project_id'),
        UniqueConstraint('cluster_id', 'project_id', name='uq_cluster_project'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    cluster_id = Column(Integer, ForeignKey("clusters.id", ondelete="CASCADE"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    # Relationships
    cluster = relationship("Cluster", back_populates="cluster_projects")
    project = relationship("Project", back_populates="cluster_projects")

    def __repr__(self):
        return f"<ClusterProject(cluster_id={self.cluster_id}, project_id={self.project_id})>"
