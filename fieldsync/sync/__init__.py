"""Synchronization core — field matching, copying, container resolution, directives and dispatch.

Modules
-------
- field_matcher: intersection of source/container column names
- copy_operation: value-for-value assignment of matched fields
- container_resolver: find-or-create / remove of the per-pair container
- directive: SyncMode, SyncDirective, registration and validation
- dispatcher: lifecycle event handling and loop prevention
"""
