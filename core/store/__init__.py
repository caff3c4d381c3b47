"""
Tracechain Store
=================
Entity-level access to the ledger for one invocation.

Modules:
    codec             - canonical JSON entity encoding
    keyspace          - "<Prefix><n>" keys and sequence keys per kind
    entity_store      - get / find / put one entity by key
    range_enumerator  - every entity of a kind, numerically ordered
    history           - every committed version of one key
"""
