"""
The `helpers` package holds cross-cutting support for store operations.

Contents
--------
- transactionManagement
    - `db_session_context`: context variable carrying the session of the
      lifecycle event in progress
    - `SessionFactory`: sessions bound to the configured engine
    - `@transactional`: joins the active session or owns a new one, committing
      on success and rolling back on failure
"""
