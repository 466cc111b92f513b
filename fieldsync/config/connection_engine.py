"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes store initialization for applications embedding the engine:
- Creates the Engine (connection pool + SQL execution entry point) from the
  environment-backed settings.
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models (sources, targets and
  their containers).

Notes
-----
- The default URL is an in-memory SQLite database; set `FIELDSYNC_DATABASE_URL`
  to point at a real store.
- All ORM models must inherit from `declarativeBase` to share the metadata used
  by `metadata.create_all(...)`.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData

from fieldsync.config.config import settings

# --------------------------------------------------------------------
# Engine object: core interface to the database.
# --------------------------------------------------------------------
connection_engine = create_engine(settings.DATABASE_URL, echo=settings.ECHO_SQL)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

metadata = MetaData()
"""Stores schema-level information about tables, constraints, indexes, etc. Shared across all models."""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models."""
