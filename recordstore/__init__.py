"""
recordstore: a generic SQLAlchemy persistence layer.

Contents:
    - database:
        Configuration, transaction management, entity mapping lookups, the
        dynamic query builder and the generic DAO.

    - api:
        Pydantic payload contracts and JSON serialization of DAO results.
"""
