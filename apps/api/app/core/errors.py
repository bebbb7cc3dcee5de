"""Domain failures raised by the service layer.

Every expected failure is raised before any write is issued, so callers can
surface them without worrying about partial state. ``ProvisioningError`` is
the only failure that follows a rollback and is safe to retry.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for typed service failures."""

    retryable = False


class NotFoundError(DomainError):
    """A referenced record is missing, or belongs to a different project."""

    def __init__(self, resource: str, resource_id: object | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class InvalidTransitionError(DomainError):
    def __init__(self, entity: str, current: str, target: str, reason: str | None = None) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        self.reason = reason
        msg = f"invalid {entity} transition {current} -> {target}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ReadOnlyAfterDecisionError(DomainError):
    def __init__(self, pipeline_id: object, decision: str) -> None:
        self.pipeline_id = pipeline_id
        self.decision = decision
        super().__init__(f"pipeline {pipeline_id} is read-only after decision {decision}")


class AlreadyDecidedError(DomainError):
    def __init__(self, pipeline_id: object, decision: str) -> None:
        self.pipeline_id = pipeline_id
        self.decision = decision
        super().__init__(f"pipeline {pipeline_id} already decided: {decision}")


class ProvisioningError(DomainError):
    """Acceptance failed mid-transaction; every write was rolled back."""

    retryable = True

    def __init__(self, pipeline_id: object, reason: str) -> None:
        self.pipeline_id = pipeline_id
        self.reason = reason
        super().__init__(f"provisioning failed for pipeline {pipeline_id}: {reason}")


class ProjectCodeExhaustedError(ProvisioningError):
    def __init__(self, pipeline_id: object, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(pipeline_id, f"no unique project code after {attempts} attempts")


class PersistenceConflictError(DomainError):
    """A write was refused by a database constraint; the session was rolled back."""

    def __init__(self, resource: str, resource_id: object | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " rejected by a database constraint"
        super().__init__(msg)
