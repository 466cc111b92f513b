"""
The `config` package provides two core building blocks for the store the engine runs against.

Contents:
    - config: Configuration layer - strongly typed settings loaded from `FIELDSYNC_*` environment variables (with .env support), exposed through a singleton Settings object, plus logging setup
    - connection_engine: Database layer - SQLAlchemy bootstrap that creates the Engine from those settings, the shared MetaData, and the declarative base for ORM models
"""
