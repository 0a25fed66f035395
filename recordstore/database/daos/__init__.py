"""
DAOs Package: Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer of the record store.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean CRUD and search APIs while hiding direct query details.

Conventions
-----------
- SQLAlchemy 2.0 `select()` statements, all values bound as parameters
- Session lifecycle (open/commit/rollback/close) handled per call by `SessionExecutor`
- Engine failures surface as `DaoError`, never as raw driver exceptions

Contents
--------
- GenericDao
    Works with any mapped entity class:
    * create, findById, findAll, update, delete, deleteById, deleteByField
    * findByField, findUniqueByField
    * search (criteria mapping or conditions, sort, pagination), count
    * findCreatedToday (local day window on a date field)
    * findWhere - structured search returning records or an error payload

- SearchOutcome
    Records-or-error result of `GenericDao.findWhere`.
"""
