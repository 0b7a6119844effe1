"""Custom exception hierarchy for the KubernetesService cluster migration."""


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when configuration is invalid or missing."""


class DecryptionError(MigratorError):
    """Raised when a ciphertext cannot be opened under its key context."""


class SelectionFailure(MigratorError):
    """Raised when the candidate query cannot be executed. Fatal to the run."""


class RecordError(MigratorError):
    """Base for failures scoped to a single legacy service record."""

    stage = "record"

    def __init__(self, service_id, cause):
        self.service_id = service_id
        self.cause = cause
        super().__init__(f"service {service_id}: {cause}")


class TransformFailure(RecordError):
    """Raised when a legacy record cannot be turned into a cluster."""

    stage = "transform"


class MarkerFailure(RecordError):
    """Raised when a migrated record cannot be flagged as migrated."""

    stage = "marker"
