"""Domain layer for agencyledger: entities, errors and services.

Services are imported from their modules (agencyledger.domain.ledger, ...)
so that the database layer can import the entities without a cycle.
"""
