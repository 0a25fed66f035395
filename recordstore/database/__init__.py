"""
The `database` package is responsible for all interactions with the relational store.
It provides configuration, mapping lookups, query construction, transaction handling
and the generic DAO that ties them together.

Contents:
    - config:
        Settings and the SQLAlchemy engine / declarative base built from them.

    - entities:
        Mapping metadata lookups (record type by name, field names, date-like fields).

    - query:
        Conditions and the query builder that turns them into parameterized plans.

    - helpers:
        Transaction management (session executor, unit of work, ``@transactional``)
        and date helpers.

    - daos:
        `GenericDao`, the public create/read/update/delete/search API.

    - exceptions:
        `DaoError` and its `ErrorKind` tags.
"""
