"""Copy Operation — value-for-value assignment of matched fields between instances."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum

from sqlalchemy import inspect
from sqlalchemy.orm.attributes import flag_modified

from fieldsync.sync.errors import FieldWriteError

logger = logging.getLogger(__name__)


class SyncDirection(Enum):
    """Which side a copy reads from."""

    SOURCE_TO_CONTAINER = "source->container"
    CONTAINER_TO_SOURCE = "container->source"


class PendingValues:
    """Read view over an instance with some attributes overridden.

    Attribute "set" hooks fire before the store applies the new value; this
    view lets a copy read the value that is about to be written.
    """

    def __init__(self, instance, overrides: Mapping | None = None):
        self._instance = instance
        self._overrides = dict(overrides or {})

    def __getattr__(self, name):
        overrides = self.__dict__["_overrides"]
        if name in overrides:
            return overrides[name]
        return getattr(self.__dict__["_instance"], name)


def copy_fields(from_instance, to_instance, fields: Iterable[str], direction: SyncDirection) -> None:
    """Assign every field of ``fields`` from ``from_instance`` onto ``to_instance``.

    Writes happen even when the value is unchanged, and mapped destinations are
    flagged modified so the store persists them. The first failing write raises
    :class:`FieldWriteError`; earlier writes stay in place.
    """
    state = inspect(to_instance, raiseerr=False)
    for name in fields:
        value = getattr(from_instance, name)
        try:
            setattr(to_instance, name, value)
        except Exception as e:
            logger.error("Copy %s failed on field '%s': %s", direction.value, name, e)
            raise FieldWriteError(name, direction, e) from e
        if state is not None:
            flag_modified(to_instance, name)
