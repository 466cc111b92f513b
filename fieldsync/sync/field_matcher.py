"""Field Matcher — which attributes are mirrored from a source into a container."""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache

from sqlalchemy import inspect


def match_fields(source_schema: Mapping, container_schema: Mapping) -> tuple[str, ...]:
    """Return the field names present in both schemas, in source declaration order.

    Names are compared exactly; declared types are not compared.
    """
    return tuple(name for name in source_schema if name in container_schema)


def column_schema(entity_cls) -> dict:
    """Map each copyable column attribute of a mapped class to its column type.

    Primary-key and foreign-key columns identify rows rather than describe them,
    so they are left out.
    """
    schema = {}
    for attr in inspect(entity_cls).column_attrs:
        column = attr.columns[0]
        if column.primary_key or column.foreign_keys:
            continue
        schema[attr.key] = column.type
    return schema


@lru_cache(maxsize=None)
def matched_fields_for(source_cls, container_cls) -> tuple[str, ...]:
    """Cached field set for a (source class, container class) pair."""
    return match_fields(column_schema(source_cls), column_schema(container_cls))
