"""
Container DAO

Purpose
-------
Provides the thin store-access layer the sync engine uses to traverse
relations and to mutate a target's container collection:
- Read a relation (collection or scalar) of an instance as a list
- Detach one instance from a relation
- Find containers in a collection by predicate
- Insert a container only if no element already matches ("add only if absent")
- Remove containers from a collection

Design
------
- Works on in-memory ORM instances; the owning SQLAlchemy `Session`, if any,
  is discovered with `object_session` and never created here. Transaction
  boundaries stay with the caller (see `helpers.transactionManagement`).
- Relation reads run under `session.no_autoflush` so that lazy loads issued
  from inside attribute events do not flush half-applied changes.
- `insertIfAbsent` serialises check-and-append through a process lock. It
  does not provide cross-process locking; that remains the store's job.

Error Handling
--------------
- Methods catch generic `Exception`, log the error message, and re-raise.
"""

from contextlib import nullcontext
import logging
import threading

from sqlalchemy.orm import object_session

logger = logging.getLogger(__name__)

_collection_lock = threading.RLock()


def no_autoflush(instance):
    """Context manager suspending autoflush of the session owning ``instance``, if any."""
    session = object_session(instance)
    return session.no_autoflush if session is not None else nullcontext()


class ContainerDao:
    """
    Data Access Object (DAO) for container collections and relation traversal.
    """

    def fetchRelated(self, instance, relation_name: str) -> list:
        """
        Return the instances reachable through a relation as a list.

        Parameters
        ----------
        instance : object
            Mapped instance owning the relation.
        relation_name : str
            Name of a collection or scalar relationship.

        Returns
        -------
        list
            Related instances; empty when a scalar relation is unset.
        """
        try:
            with no_autoflush(instance):
                related = getattr(instance, relation_name)
                if related is None:
                    return []
                if hasattr(related, "__iter__"):
                    return list(related)
                return [related]
        except Exception as e:
            logger.error("Error in ContainerDao.fetchRelated (%s). Error: %s", relation_name, e)
            raise

    def unlinkRelated(self, instance, relation_name: str, other) -> bool:
        """
        Detach ``other`` from a collection or scalar relation of ``instance``.

        Returns
        -------
        bool
            True if ``other`` was linked and has been removed.
        """
        try:
            with no_autoflush(instance):
                related = getattr(instance, relation_name)
                if hasattr(related, "remove"):
                    if other in related:
                        related.remove(other)
                        return True
                    return False
                if related is other:
                    setattr(instance, relation_name, None)
                    return True
                return False
        except Exception as e:
            logger.error("Error in ContainerDao.unlinkRelated (%s). Error: %s", relation_name, e)
            raise

    def findContainers(self, target, container_relation: str, predicate) -> list:
        """
        Return every container of ``target`` matching ``predicate``, in collection order.
        """
        try:
            with no_autoflush(target):
                return [c for c in getattr(target, container_relation) if predicate(c)]
        except Exception as e:
            logger.error("Error in ContainerDao.findContainers (%s). Error: %s", container_relation, e)
            raise

    def insertIfAbsent(self, target, container_relation: str, predicate, factory):
        """
        Append ``factory()`` to the collection unless an element matches ``predicate``.

        Returns
        -------
        tuple[object, bool]
            The matching or inserted container, and whether it was inserted.
        """
        try:
            with _collection_lock, no_autoflush(target):
                collection = getattr(target, container_relation)
                for container in collection:
                    if predicate(container):
                        return container, False
                container = factory()
                collection.append(container)
                return container, True
        except Exception as e:
            logger.error("Error in ContainerDao.insertIfAbsent (%s). Error: %s", container_relation, e)
            raise

    def removeContainers(self, target, container_relation: str, containers) -> int:
        """
        Remove the given containers from the collection.

        Returns
        -------
        int
            Number of containers removed.
        """
        try:
            removed = 0
            with _collection_lock, no_autoflush(target):
                collection = getattr(target, container_relation)
                for container in containers:
                    if container in collection:
                        collection.remove(container)
                        removed += 1
            return removed
        except Exception as e:
            logger.error("Error in ContainerDao.removeContainers (%s). Error: %s", container_relation, e)
            raise
