"""Lifecycle Dispatcher — turns store lifecycle events into container mirroring.

Entry points (store agnostic, callable directly):

- ``on_association_add(bound, target, source)``
- ``on_association_remove(bound, target, source)``
- ``on_instance_updated(source, changes=None)``
- ``on_container_updated(container, changes=None)``
- ``on_instance_destroyed(source)``

``subscribe``/``listen`` wire those entry points to SQLAlchemy attribute events
and to ``Session.before_flush`` (for deleted sources). ``dispose`` detaches
every listener the dispatcher attached.

Every copy runs with its (target, source) pair marked in-flight; events the
copy itself triggers for that pair are dropped instead of re-dispatched.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar

from sqlalchemy import event
from sqlalchemy.orm import Session

from fieldsync.config.config import settings
from fieldsync.daos.container_dao import ContainerDao, no_autoflush
from fieldsync.sync.container_resolver import ContainerResolver
from fieldsync.sync.copy_operation import PendingValues, SyncDirection, copy_fields
from fieldsync.sync.directive import BoundDirective, DirectiveRegistry, registry as default_registry
from fieldsync.sync.errors import FieldWriteError

logger = logging.getLogger(__name__)

_in_flight: ContextVar[frozenset] = ContextVar("fieldsync_in_flight", default=frozenset())


def _pair(target, source) -> tuple[int, int]:
    return (id(target), id(source))


def _is_instance(value) -> bool:
    return value is not None and hasattr(value, "_sa_instance_state")


class LifecycleDispatcher:
    """Dispatches lifecycle events of registered directives."""

    def __init__(self, registry: DirectiveRegistry | None = None, dao: ContainerDao | None = None):
        self.registry = registry if registry is not None else default_registry
        self.dao = dao or ContainerDao()
        self._resolvers: dict[tuple, ContainerResolver] = {}
        self._listeners: list[tuple] = []
        self._subscribed: set[tuple] = set()
        self._flush_listening = False

    # ------------------------------------------------------------------
    # loop prevention
    # ------------------------------------------------------------------
    @staticmethod
    def is_synchronizing(target, source) -> bool:
        return _pair(target, source) in _in_flight.get()

    @contextmanager
    def _synchronizing(self, target, source):
        token = _in_flight.set(_in_flight.get() | {_pair(target, source)})
        try:
            yield
        finally:
            _in_flight.reset(token)

    def _suppressed(self, target, source, what: str) -> bool:
        if not self.is_synchronizing(target, source):
            return False
        logger.debug(
            "Suppressed %s for %s/%s while synchronizing", what, type(target).__name__, type(source).__name__
        )
        return True

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def resolver_for(self, bound: BoundDirective) -> ContainerResolver:
        key = (bound.directive.owner_type, bound.relation_name)
        if key not in self._resolvers:
            self._resolvers[key] = ContainerResolver(bound.container_type, bound.source_reference, self.dao)
        return self._resolvers[key]

    def _linked(self, bound, target, source) -> bool:
        return any(s is source for s in self.dao.fetchRelated(target, bound.sources_of_target))

    def _copy(self, bound, target, source, from_instance, to_instance, direction):
        with self._synchronizing(target, source), no_autoflush(to_instance):
            copy_fields(from_instance, to_instance, bound.fields, direction)

    # ------------------------------------------------------------------
    # lifecycle entry points
    # ------------------------------------------------------------------
    def on_association_add(self, bound: BoundDirective, target, source):
        """Resolve the pair's container and mirror the source into it."""
        resolver = self.resolver_for(bound)
        existing = resolver.find(target, source, bound.container_relation)
        container = resolver.resolve(target, source, bound.container_relation)
        try:
            self._copy(bound, target, source, source, container, SyncDirection.SOURCE_TO_CONTAINER)
        except FieldWriteError:
            if existing is None:
                resolver.remove_for(target, source, bound.container_relation)
                self._unlink(bound, target, source)
            raise
        return container

    def _unlink(self, bound, target, source) -> None:
        # the inverse side may already hold the pair through the backref
        with self._synchronizing(target, source):
            self.dao.unlinkRelated(source, bound.targets_of_source, target)
            self.dao.unlinkRelated(target, bound.sources_of_target, source)

    def on_association_remove(self, bound: BoundDirective, target, source) -> None:
        self.resolver_for(bound).remove_for(target, source, bound.container_relation)

    def on_instance_updated(self, source, changes: dict | None = None) -> None:
        """Mirror a changed source into the container of every linked target."""
        for bound in self.registry.for_source(source):
            self._source_changed(bound, source, changes)

    def on_container_updated(self, container, changes: dict | None = None) -> None:
        """Propagate a direct container edit back to its source (bidirectional only)."""
        for bound in self.registry.for_container(container):
            self._container_changed(bound, container, changes)

    def on_instance_destroyed(self, source) -> None:
        """Remove the containers of a source that is being destroyed."""
        for bound in self.registry.for_source(source):
            resolver = self.resolver_for(bound)
            for target in self.dao.fetchRelated(source, bound.targets_of_source):
                resolver.remove_for(target, source, bound.container_relation)

    def _source_changed(self, bound, source, changes) -> None:
        if changes is not None and not set(changes) & set(bound.fields):
            return
        view = PendingValues(source, changes)
        resolver = self.resolver_for(bound)
        for target in self.dao.fetchRelated(source, bound.targets_of_source):
            if self._suppressed(target, source, "source update"):
                continue
            if not self._linked(bound, target, source):
                continue
            if settings.RECREATE_MISSING_CONTAINERS:
                container = resolver.resolve(target, source, bound.container_relation)
            else:
                container = resolver.find(target, source, bound.container_relation)
                if container is None:
                    continue
            self._copy(bound, target, source, view, container, SyncDirection.SOURCE_TO_CONTAINER)

    def _container_changed(self, bound, container, changes) -> None:
        if not bound.mode.includes_reverse:
            return
        if changes is not None and not set(changes) & set(bound.fields):
            return
        sources = self.dao.fetchRelated(container, bound.source_reference)
        targets = self.dao.fetchRelated(container, bound.target_reference)
        if not sources or not targets:
            return
        source, target = sources[0], targets[0]
        if self._suppressed(target, source, "container update"):
            return
        self._copy(
            bound, target, source, PendingValues(container, changes), source,
            SyncDirection.CONTAINER_TO_SOURCE,
        )

    # ------------------------------------------------------------------
    # SQLAlchemy wiring
    # ------------------------------------------------------------------
    def _listen(self, target, identifier, fn, **kw) -> None:
        event.listen(target, identifier, fn, **kw)
        self._listeners.append((target, identifier, fn))

    def subscribe(self, bound: BoundDirective) -> None:
        """Attach the attribute and session listeners one directive needs."""
        key = (bound.directive.owner_type, bound.relation_name)
        if key in self._subscribed:
            return
        self._subscribed.add(key)

        declared_on_target = bound.mode.declared_on_target
        owner_attr = getattr(bound.directive.owner_type, bound.relation_name)

        def as_pair(owner, other):
            return (owner, other) if declared_on_target else (other, owner)

        if owner_attr.property.uselist:
            def on_append(owner, value, initiator):
                self.on_association_add(bound, *as_pair(owner, value))

            def on_remove(owner, value, initiator):
                self.on_association_remove(bound, *as_pair(owner, value))

            self._listen(owner_attr, "append", on_append)
            self._listen(owner_attr, "remove", on_remove)
        else:
            def on_set(owner, value, oldvalue, initiator):
                if oldvalue is value:
                    return
                if _is_instance(oldvalue):
                    self.on_association_remove(bound, *as_pair(owner, oldvalue))
                if _is_instance(value):
                    self.on_association_add(bound, *as_pair(owner, value))

            self._listen(owner_attr, "set", on_set, active_history=True)

        for name in bound.fields:
            self._listen(getattr(bound.source_type, name), "set", self._source_field_listener(bound, name))
            if bound.mode.includes_reverse:
                self._listen(
                    getattr(bound.container_type, name), "set", self._container_field_listener(bound, name)
                )

        if not self._flush_listening:
            self._flush_listening = True
            self._listen(Session, "before_flush", self._before_flush)

    def _source_field_listener(self, bound, name):
        def on_set(instance, value, oldvalue, initiator):
            self._source_changed(bound, instance, {name: value})
        return on_set

    def _container_field_listener(self, bound, name):
        def on_set(instance, value, oldvalue, initiator):
            self._container_changed(bound, instance, {name: value})
        return on_set

    def _before_flush(self, session, flush_context, instances) -> None:
        for instance in list(session.deleted):
            if self.registry.for_source(instance):
                self.on_instance_destroyed(instance)

    def listen(self) -> None:
        """Subscribe every directive currently in the registry."""
        for bound in self.registry.all():
            self.subscribe(bound)

    def dispose(self) -> None:
        """Detach every listener attached by this dispatcher."""
        while self._listeners:
            target, identifier, fn = self._listeners.pop()
            event.remove(target, identifier, fn)
        self._subscribed.clear()
        self._resolvers.clear()
        self._flush_listening = False


dispatcher = LifecycleDispatcher()
"""Process-wide dispatcher bound to the process-wide registry."""
