"""Services Layer — invite issuance, redemption and membership workflows.

Invariants:
    - Services receive a DataStore and Clock by constructor injection
    - Multi-step writes go through Saga so compensation is explicit

Design Decisions:
    - One service per workflow for locality (no god objects)
"""
