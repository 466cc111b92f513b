"""Error kinds raised by the sync engine."""

from __future__ import annotations


class FieldSyncError(Exception):
    """Base class for every error the engine raises."""


class ConfigurationError(FieldSyncError):
    """A sync directive is invalid. Raised at registration time; fatal to startup."""


class FieldWriteError(FieldSyncError):
    """A matched field could not be assigned to the destination instance.

    Fields written before the failing one are not rolled back.
    """

    def __init__(self, field: str, direction, cause: BaseException):
        self.field = field
        self.direction = direction
        self.cause = cause
        super().__init__(
            f"Could not write field '{field}' ({direction.value}): {cause}"
        )


class ContainerResolutionConflict(UserWarning):
    """More than one container was found for the same (target, source) pair.

    Emitted as a warning; the surplus containers are removed.
    """

