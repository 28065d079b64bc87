"""Services Layer — academy cache, command handlers, automation and sync loops.

Invariants:
    - Handlers split by concern (max ~5 methods each)
    - Every command takes an explicit ActorContext
    - Pure core functions do the work; services only orchestrate cache and IO

Design Decisions:
    - One handler file per concern for locality (ADR: no god objects)
"""
