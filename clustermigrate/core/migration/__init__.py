"""KubernetesService to clusters migration."""

from .engine import KubernetesServiceMigration
from .report import MigrationReport, RecordFailure, RecordState
from .selector import Candidate, UnmanagedServiceSelector, unmanaged_kubernetes_services

__all__ = [
    "KubernetesServiceMigration",
    "MigrationReport",
    "RecordFailure",
    "RecordState",
    "Candidate",
    "UnmanagedServiceSelector",
    "unmanaged_kubernetes_services",
]
