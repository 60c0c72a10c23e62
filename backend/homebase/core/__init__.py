"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (except invite code generation,
      which reads the OS random source)

Design Decisions:
    - Functional core separated from imperative shell
"""
