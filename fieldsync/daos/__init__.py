"""
DAOs Package — Store Access Layer (SQLAlchemy 2.0)
==================================================

The `daos` package encapsulates the interactions of the sync engine with
SQLAlchemy ORM instances, hiding relation traversal and collection mutation
details from the sync modules.

Conventions
-----------
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- ContainerDao
    Relation traversal and container collection mutation:
    * fetchRelated(instance, relation) — related instances as a list
    * unlinkRelated(instance, relation, other)
    * findContainers(target, relation, predicate)
    * insertIfAbsent(target, relation, predicate, factory) — find-or-create
    * removeContainers(target, relation, containers)
"""
