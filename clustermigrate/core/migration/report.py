"""Per-run outcome tracking for the KubernetesService migration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ...exceptions import RecordError


class RecordState(str, Enum):
    """States a legacy record moves through during a run."""
    SELECTED = "selected"
    TRANSFORMING = "transforming"
    TRANSFORMED = "transformed"
    TRANSFORM_FAILED = "transform_failed"
    MARKED = "marked"
    MARK_FAILED = "mark_failed"


@dataclass
class RecordFailure:
    """A record that did not reach the ``marked`` state."""
    service_id: int
    state: RecordState
    cause: str

    @classmethod
    def from_error(cls, error: RecordError) -> "RecordFailure":
        state = RecordState.MARK_FAILED if error.stage == "marker" else RecordState.TRANSFORM_FAILED
        return cls(service_id=error.service_id, state=state, cause=str(error.cause))


@dataclass
class MigrationReport:
    """Summary returned by ``KubernetesServiceMigration.run()``."""
    candidates_found: int = 0
    migrated: int = 0
    failures: List[RecordFailure] = field(default_factory=list)

    def record_failure(self, error: RecordError) -> RecordFailure:
        failure = RecordFailure.from_error(error)
        self.failures.append(failure)
        return failure

    @property
    def transform_failures(self) -> List[RecordFailure]:
        return [f for f in self.failures if f.state == RecordState.TRANSFORM_FAILED]

    @property
    def marker_failures(self) -> List[RecordFailure]:
        return [f for f in self.failures if f.state == RecordState.MARK_FAILED]

    @property
    def succeeded(self) -> bool:
        """True when no record failed to transform. Marker failures are non-fatal."""
        return not self.transform_failures

    @property
    def first_failure(self) -> Optional[RecordFailure]:
        failures = self.transform_failures
        return failures[0] if failures else None

    def summary(self) -> str:
        text = (
            f"candidates={self.candidates_found}, migrated={self.migrated}, "
            f"transform_failures={len(self.transform_failures)}, "
            f"marker_failures={len(self.marker_failures)}"
        )
        first = self.first_failure
        if first is not None:
            text += f", first_failure=service {first.service_id}: {first.cause}"
        return text
