"""Infrastructure Layer — database, external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure imports only core/errors and core/domain_types from core/
    - All external calls wrapped with timeout and error mapping

Design Decisions:
    - Resilient wrappers over raw clients (ADR: single responsibility)
"""
