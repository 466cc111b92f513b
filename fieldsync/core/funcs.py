"""
Service-layer operations for declaring mirrors and driving lifecycle events.

The store mutations below are wrapped with the `@transactional` decorator,
which manages SQLAlchemy sessions and transactions automatically. Each of
them performs the plain ORM change; the mirroring itself happens inside the
same transaction through the dispatcher's event listeners, so a failed copy
rolls the whole event back.
"""

import logging

from sqlalchemy.orm import Session

from fieldsync.helpers.transactionManagement import transactional
from fieldsync.sync.directive import BoundDirective, DirectiveRegistry, registry as default_registry
from fieldsync.sync.dispatcher import LifecycleDispatcher, dispatcher as default_dispatcher

logger = logging.getLogger(__name__)


def mirror_fields(
    owner_type,
    relation_name: str,
    container_relation_name: str,
    mode,
    source_reference_name: str | None = None,
    registry: DirectiveRegistry | None = None,
    dispatcher: LifecycleDispatcher | None = None,
) -> BoundDirective:
    """
    Declare a sync directive and subscribe it to the store's lifecycle events.

    Parameters
    ----------
    owner_type : type
        Mapped class the directive is declared on (target for pull/bidirectional,
        source for push).
    relation_name : str
        Relation on ``owner_type`` linking targets and sources.
    container_relation_name : str
        Collection relation on the target holding the containers.
    mode : SyncMode | str
        ``"pull"``, ``"push"`` or ``"bidirectional"``.
    source_reference_name : str | None
        Container relation pointing at the source, when it cannot be inferred.

    Returns
    -------
    BoundDirective
        The registered directive.

    Raises
    ------
    ConfigurationError
        If the directive is invalid.
    """
    registry = registry if registry is not None else default_registry
    dispatcher = dispatcher if dispatcher is not None else default_dispatcher
    bound = registry.declare(owner_type, relation_name, container_relation_name, mode, source_reference_name)
    dispatcher.subscribe(bound)
    return bound


@transactional
def link_source(target, relation_name: str, source, session: Session = None):
    """
    Add ``source`` to ``target``'s relation (association-add).

    Returns
    -------
    object
        The target, attached to the committed session state.
    """
    session.add(target)
    session.add(source)
    related = getattr(target, relation_name)
    if hasattr(related, "append"):
        if source not in related:
            related.append(source)
    else:
        setattr(target, relation_name, source)
    return target


@transactional
def unlink_source(target, relation_name: str, source, session: Session = None):
    """Remove ``source`` from ``target``'s relation (association-remove)."""
    session.add(target)
    related = getattr(target, relation_name)
    if hasattr(related, "remove"):
        if source in related:
            related.remove(source)
    elif related is source:
        setattr(target, relation_name, None)
    return target


@transactional
def update_source(source, session: Session = None, **values):
    """Assign new field values on a source (source-update)."""
    session.add(source)
    for name, value in values.items():
        setattr(source, name, value)
    return source


@transactional
def edit_container(container, session: Session = None, **values):
    """Assign field values directly on a container (container-update)."""
    session.add(container)
    for name, value in values.items():
        setattr(container, name, value)
    return container


@transactional
def destroy_source(source, session: Session = None):
    """Delete a source; its containers are removed when the session flushes."""
    session.add(source)
    session.delete(source)
    logger.debug("Destroying %s", type(source).__name__)
