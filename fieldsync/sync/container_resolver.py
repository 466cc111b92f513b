"""Container Resolver — the single container of a (target, source) pair."""

from __future__ import annotations

import logging
import warnings

from fieldsync.daos.container_dao import ContainerDao
from fieldsync.sync.errors import ContainerResolutionConflict

logger = logging.getLogger(__name__)


class ContainerResolver:
    """Finds, creates and removes containers inside a target's container collection.

    A container belongs to a source when its ``source_reference`` attribute is
    that very source instance.
    """

    def __init__(self, container_cls, source_reference: str, dao: ContainerDao | None = None):
        self.container_cls = container_cls
        self.source_reference = source_reference
        self.dao = dao or ContainerDao()

    def _belongs_to(self, source):
        return lambda container: getattr(container, self.source_reference) is source

    def find(self, target, source, container_relation: str):
        """Return the existing container for ``source`` or ``None``."""
        matches = self.dao.findContainers(target, container_relation, self._belongs_to(source))
        return matches[0] if matches else None

    def resolve(self, target, source, container_relation: str):
        """Return the container for ``source``, creating and appending it if missing."""
        container, created = self.dao.insertIfAbsent(
            target,
            container_relation,
            self._belongs_to(source),
            lambda: self.container_cls(**{self.source_reference: source}),
        )
        if created:
            logger.debug(
                "Created %s in %s.%s", self.container_cls.__name__, type(target).__name__, container_relation
            )
        return self._settle_conflicts(target, source, container_relation, container)

    def remove_for(self, target, source, container_relation: str) -> int:
        """Remove every container for ``source``; nothing to remove is not an error."""
        matches = self.dao.findContainers(target, container_relation, self._belongs_to(source))
        if not matches:
            return 0
        removed = self.dao.removeContainers(target, container_relation, matches)
        logger.debug(
            "Removed %d %s from %s.%s", removed, self.container_cls.__name__, type(target).__name__,
            container_relation,
        )
        return removed

    def _settle_conflicts(self, target, source, container_relation, container):
        matches = self.dao.findContainers(target, container_relation, self._belongs_to(source))
        if len(matches) <= 1:
            return container
        keep, orphans = matches[0], matches[1:]
        message = (
            f"{len(matches)} {self.container_cls.__name__} found for one source in "
            f"{type(target).__name__}.{container_relation}; removing {len(orphans)} orphaned"
        )
        logger.warning(message)
        warnings.warn(message, ContainerResolutionConflict, stacklevel=2)
        self.dao.removeContainers(target, container_relation, orphans)
        return keep
