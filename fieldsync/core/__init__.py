"""
The `core` package connects applications with the sync engine.

Contents
--------
- funcs
    - `mirror_fields(...)`: declare a directive and subscribe it to lifecycle events
    - `@transactional` store operations driving the lifecycle events:
      `link_source`, `unlink_source`, `update_source`, `edit_container`, `destroy_source`
"""
