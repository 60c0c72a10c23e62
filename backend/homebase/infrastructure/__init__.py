"""Infrastructure Layer — database, data store, clock and logging.

Invariants:
    - Infrastructure implements core protocols; it never holds business rules
    - All SQLAlchemy failures mapped to DatabaseError

Design Decisions:
    - Store and clock are adapters behind core/repository_protocols
"""
