"""Core Layer: pure routing logic, no IO, no network, no framework imports.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
    - Functions are deterministic given their inputs; async lives in services/
"""
