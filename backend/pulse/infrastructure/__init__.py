"""Infrastructure Layer — persistence clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports core/ domain logic beyond types and errors
    - All store calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw sessions (single responsibility per module)
"""
