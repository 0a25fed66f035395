"""
The `helpers` package provides utility functions and classes
that support database operations and cross-cutting concerns.

Contents
--------
- transactionManagement
    Provides tools for database transaction management:
        - `SessionExecutor` running every DAO call in its own unit of work (`runRead` / `runWrite`)
        - `UnitOfWork` handle with rollback-only support
        - Context variable (`db_session_context`) for propagating the active session across function calls without explicit passing
        - `@transactional` decorator for wrapping service functions in one managed transaction:
            - Reuses an existing session if one is active in context
            - Creates, commits, and closes a new session otherwise
            - Rolls back the session on errors

- dateUtil
    Parsing of ``dd-MMM-yy`` date literals and local day windows.
"""
