"""
Tracechain Core Primitives
===========================
Shared building blocks every engine consumes:

- Pure Python (no Django dependency)
- Immutable (frozen dataclasses)
- Deterministic (same input → same output)

Primitives:
    actor       - Role, User claim, Actor projection
    provenance  - ProvenanceEvent / DeliveryEvent and named lookup
    workflow    - Stage transition tables
"""
