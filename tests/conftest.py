"""Shared fixtures for fieldsync tests."""

import pytest

from fieldsync.config.connection_engine import connection_engine, metadata
from fieldsync.core.funcs import mirror_fields
from fieldsync.helpers.transactionManagement import SessionFactory
from fieldsync.sync.directive import DirectiveRegistry
from fieldsync.sync.dispatcher import LifecycleDispatcher

from models import VISIT_DATE, Appointment, Doctor


@pytest.fixture
def sync():
    """Isolated registry + dispatcher; listeners are detached after the test."""
    dispatcher = LifecycleDispatcher(DirectiveRegistry())
    yield dispatcher
    dispatcher.dispose()


@pytest.fixture
def mirror(sync):
    """Declare and subscribe a directive on the isolated dispatcher."""

    def _mirror(owner_type, relation_name, container_relation_name, mode, **kwargs):
        return mirror_fields(
            owner_type,
            relation_name,
            container_relation_name,
            mode,
            registry=sync.registry,
            dispatcher=sync,
            **kwargs,
        )

    return _mirror


@pytest.fixture
def tables():
    metadata.create_all(connection_engine)
    yield
    metadata.drop_all(connection_engine)


@pytest.fixture
def db(tables):
    session = SessionFactory()
    yield session
    session.close()


@pytest.fixture
def appointment():
    return Appointment(date=VISIT_DATE, status="late", reason="checkup")


@pytest.fixture
def doctor():
    return Doctor(name="House")
