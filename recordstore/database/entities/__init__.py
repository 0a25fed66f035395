"""
Entities Package: mapping metadata
===================================

The record store does not define entities of its own. Callers map their
classes on `recordstore.database.config.connection_engine.declarativeBase`
(or any SQLAlchemy registry) and hand them to `GenericDao`.

Contents
--------
- mapping
    Lookups over the declarative registry:
    * resolve a record type by class or table name
    * list the column attributes a condition may refer to
    * resolve relationship targets for explicit joins
    * tell whether a field holds dates/times
"""
