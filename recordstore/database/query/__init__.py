"""
Query Package: dynamic, parameterized queries
==============================================

Contents
--------
- condition
    `Condition` value objects, the `Operator` vocabulary and factory helpers
    (`eq`, `ne`, `gt`, `lt`, `ge`, `le`, `like`, `notLike`, `in_`, `notIn`,
    `isNull`, `isNotNull`, `between`, `dateEq`, `dateGt`, `dateLt`, `dateBetween`).

- query_builder
    `QueryBuilder` producing `QueryPlan` objects: predicates with unique bind
    slots, validated field names, optional sort, pagination and joins.
"""
