"""
fieldsync — field-mirroring synchronization for SQLAlchemy models.

Given a *source* entity related to a *target* entity, fieldsync keeps one
*container* per (target, source) pair inside a collection owned by the target,
and keeps the container's matching columns equal to the source's values.

Contents:
    - config:
        Environment-driven settings, logging setup, and the SQLAlchemy engine,
        metadata and declarative base.

    - helpers:
        Transaction management (`@transactional`).

    - daos:
        Relation traversal and container collection mutation.

    - sync:
        Field matching, copy operation, container resolution, sync directives
        and the lifecycle dispatcher.

    - core:
        `mirror_fields(...)` and transactional store operations.

Usage
-----
    from fieldsync import mirror_fields

    mirror_fields(Doctor, "appointments", "appointment_infos", mode="pull")
"""

from fieldsync.config.config import configure_logging, settings
from fieldsync.core.funcs import (
    destroy_source,
    edit_container,
    link_source,
    mirror_fields,
    unlink_source,
    update_source,
)
from fieldsync.sync.container_resolver import ContainerResolver
from fieldsync.sync.copy_operation import SyncDirection, copy_fields
from fieldsync.sync.directive import (
    BoundDirective,
    DirectiveRegistry,
    SyncDirective,
    SyncMode,
    registry,
)
from fieldsync.sync.dispatcher import LifecycleDispatcher, dispatcher
from fieldsync.sync.errors import (
    ConfigurationError,
    ContainerResolutionConflict,
    FieldSyncError,
    FieldWriteError,
)
from fieldsync.sync.field_matcher import column_schema, match_fields

__version__ = "0.1.0"

__all__ = [
    "BoundDirective",
    "ConfigurationError",
    "ContainerResolutionConflict",
    "ContainerResolver",
    "DirectiveRegistry",
    "FieldSyncError",
    "FieldWriteError",
    "LifecycleDispatcher",
    "SyncDirection",
    "SyncDirective",
    "SyncMode",
    "column_schema",
    "configure_logging",
    "copy_fields",
    "destroy_source",
    "dispatcher",
    "edit_container",
    "link_source",
    "match_fields",
    "mirror_fields",
    "registry",
    "settings",
    "unlink_source",
    "update_source",
]
