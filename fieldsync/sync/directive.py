"""Sync Directive — declarative mirroring configuration and its process-wide registry.

A directive is declared once per owning entity type, at configuration time:

    registry.declare(Doctor, "appointments", "appointment_infos", mode="pull")

Declaration resolves every relation against the SQLAlchemy mappers right
away, so a misconfigured directive fails at startup instead of on the first
event.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy import inspect
from sqlalchemy.orm import Mapper, configure_mappers

from fieldsync.sync.errors import ConfigurationError
from fieldsync.sync.field_matcher import matched_fields_for

logger = logging.getLogger(__name__)


class SyncMode(Enum):
    """Which side's events drive the mirroring."""

    PULL = "pull"
    PUSH = "push"
    BIDIRECTIONAL = "bidirectional"

    @property
    def declared_on_target(self) -> bool:
        return self is not SyncMode.PUSH

    @property
    def includes_reverse(self) -> bool:
        return self is SyncMode.BIDIRECTIONAL


class SyncDirective(BaseModel):
    """Immutable mirroring declaration bound to one owning entity type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    owner_type: type
    relation_name: str
    container_relation_name: str
    mode: SyncMode = Field(None, validate_default=True)
    source_reference_name: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _known_mode(cls, value):
        if isinstance(value, SyncMode):
            return value
        try:
            return SyncMode(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid sync mode {value!r}; expected one of "
                f"{', '.join(m.value for m in SyncMode)}"
            ) from None


@dataclass(frozen=True)
class BoundDirective:
    """A registered directive with every relation resolved against the mappers."""

    directive: SyncDirective
    source_type: type
    target_type: type
    container_type: type
    targets_of_source: str
    sources_of_target: str
    source_reference: str
    target_reference: str | None
    fields: tuple[str, ...]

    @property
    def mode(self) -> SyncMode:
        return self.directive.mode

    @property
    def relation_name(self) -> str:
        return self.directive.relation_name

    @property
    def container_relation(self) -> str:
        return self.directive.container_relation_name

    @property
    def pair_key(self) -> tuple:
        return (self.target_type, self.source_type, self.container_relation)


def _mapper_of(cls) -> Mapper:
    mapper = inspect(cls, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise ConfigurationError(f"{cls!r} is not a mapped entity type")
    return mapper


def _relationship(mapper: Mapper, name: str, role: str):
    if name not in mapper.relationships:
        raise ConfigurationError(f"{mapper.class_.__name__} has no relation '{name}' ({role})")
    return mapper.relationships[name]


def _source_reference(directive: SyncDirective, container_type, source_type) -> str:
    container_mapper = _mapper_of(container_type)
    if directive.source_reference_name:
        prop = _relationship(container_mapper, directive.source_reference_name, "source reference")
        if prop.uselist or not issubclass(source_type, prop.mapper.class_):
            raise ConfigurationError(
                f"{container_type.__name__}.{prop.key} must reference a single {source_type.__name__}"
            )
        return prop.key
    candidates = [
        prop.key
        for prop in container_mapper.relationships
        if not prop.uselist and issubclass(source_type, prop.mapper.class_)
    ]
    if len(candidates) != 1:
        raise ConfigurationError(
            f"{container_type.__name__} needs exactly one reference to {source_type.__name__}, "
            f"found {candidates or 'none'}; pass source_reference_name"
        )
    return candidates[0]


def bind_directive(directive: SyncDirective) -> BoundDirective:
    """Resolve a directive against the mappers, raising ConfigurationError on any mismatch."""
    configure_mappers()
    owner_mapper = _mapper_of(directive.owner_type)
    relation = _relationship(owner_mapper, directive.relation_name, "mirrored relation")
    related_type = relation.mapper.class_

    if directive.mode.declared_on_target:
        target_type, source_type = directive.owner_type, related_type
    else:
        target_type, source_type = related_type, directive.owner_type

    container_relation = _relationship(
        _mapper_of(target_type), directive.container_relation_name, "container relation"
    )
    if not container_relation.uselist:
        raise ConfigurationError(
            f"{target_type.__name__}.{container_relation.key} must be a collection of containers"
        )
    container_type = container_relation.mapper.class_

    if not relation.back_populates:
        raise ConfigurationError(
            f"{directive.owner_type.__name__}.{relation.key} needs an inverse relation "
            "(back_populates or backref) to reach targets from a source"
        )
    if directive.mode.declared_on_target:
        targets_of_source, sources_of_target = relation.back_populates, relation.key
    else:
        targets_of_source, sources_of_target = relation.key, relation.back_populates

    target_reference = container_relation.back_populates
    if directive.mode.includes_reverse and not target_reference:
        raise ConfigurationError(
            f"Bidirectional mode needs {container_type.__name__} to reference its "
            f"{target_type.__name__} (back_populates on {target_type.__name__}.{container_relation.key})"
        )

    return BoundDirective(
        directive=directive,
        source_type=source_type,
        target_type=target_type,
        container_type=container_type,
        targets_of_source=targets_of_source,
        sources_of_target=sources_of_target,
        source_reference=_source_reference(directive, container_type, source_type),
        target_reference=target_reference,
        fields=matched_fields_for(source_type, container_type),
    )


class DirectiveRegistry:
    """Process-wide store of bound directives keyed by (owner type, relation name)."""

    def __init__(self):
        self._bindings: dict[tuple, BoundDirective] = {}
        self._lock = threading.Lock()

    def register(self, directive: SyncDirective) -> BoundDirective:
        """Validate and store a directive."""
        bound = bind_directive(directive)
        key = (directive.owner_type, directive.relation_name)
        with self._lock:
            if key in self._bindings:
                raise ConfigurationError(
                    f"A directive for {directive.owner_type.__name__}.{directive.relation_name} "
                    "is already registered"
                )
            for other in self._bindings.values():
                if other.pair_key == bound.pair_key:
                    raise ConfigurationError(
                        f"{bound.source_type.__name__} -> {bound.target_type.__name__}."
                        f"{bound.container_relation} is already mirrored by a directive on "
                        f"{other.directive.owner_type.__name__}; declare it on one side only"
                    )
            self._bindings[key] = bound
        logger.info(
            "Registered %s directive %s.%s -> %s.%s (fields: %s)",
            bound.mode.value, directive.owner_type.__name__, directive.relation_name,
            bound.target_type.__name__, bound.container_relation, ", ".join(bound.fields) or "-",
        )
        return bound

    def declare(
        self,
        owner_type,
        relation_name: str,
        container_relation_name: str,
        mode=None,
        source_reference_name: str | None = None,
    ) -> BoundDirective:
        """Build a directive from plain arguments and register it."""
        try:
            directive = SyncDirective(
                owner_type=owner_type,
                relation_name=relation_name,
                container_relation_name=container_relation_name,
                mode=mode,
                source_reference_name=source_reference_name,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid sync directive: {e}") from e
        return self.register(directive)

    def all(self) -> list[BoundDirective]:
        return list(self._bindings.values())

    def for_source(self, instance_or_cls) -> list[BoundDirective]:
        cls = instance_or_cls if isinstance(instance_or_cls, type) else type(instance_or_cls)
        return [b for b in self._bindings.values() if issubclass(cls, b.source_type)]

    def for_container(self, instance_or_cls) -> list[BoundDirective]:
        cls = instance_or_cls if isinstance(instance_or_cls, type) else type(instance_or_cls)
        return [b for b in self._bindings.values() if issubclass(cls, b.container_type)]

    def clear(self) -> None:
        with self._lock:
            self._bindings.clear()


registry = DirectiveRegistry()
"""Process-wide directive registry."""
