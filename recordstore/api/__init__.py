"""
API Package: payload contracts and serialization
=================================================

Contents
--------
- models
    Pydantic data contracts handed to callers:
      • ErrorMessage - ``{error_code, error_description}``

- utils
    JSON serialization of DAO results:
      • entity_to_dict(entity) - column attributes of a mapped entity
      • to_payload(value) / to_json(value) - entities, lists, `SearchOutcome`,
        `ErrorMessage` and `DaoError` to JSON-ready data / text
"""
