"""
Lifecycle Transaction Management
================================

Runs each lifecycle event (add/update/remove/destroy) inside one logical
SQLAlchemy transaction. The store mutation and the mirroring its listeners
perform are committed together, or rolled back together when a copy fails.

The active session travels in a context variable, so nested service calls
join the outer transaction instead of opening their own.
"""

from functools import wraps
import contextvars
import logging

from sqlalchemy.orm import sessionmaker

from fieldsync.config.connection_engine import connection_engine

logger = logging.getLogger(__name__)

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""

SessionFactory = sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Session factory bound to the configured engine. Instances stay readable after commit."""


def transactional(func):
    """
    Run ``func`` as one lifecycle transaction.

    A session already bound to the current context is passed through untouched;
    the outermost call owns the session, flushes and commits it on success, and
    rolls it back on any exception before re-raising.

    Parameters
    ----------
    func : callable
        Service function accepting a ``session`` keyword argument.

    Returns
    -------
    callable
        Wrapped function.

    Example
    -------
    >>> @transactional
    ... def rename(doctor, name, session=None):
    ...     session.add(doctor)
    ...     doctor.name = name
    ...     return doctor
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session:
            return func(*args, session=session, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            logger.debug("Rolling back transaction of %s", func.__name__)
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
