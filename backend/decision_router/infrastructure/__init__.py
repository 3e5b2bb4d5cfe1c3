"""Infrastructure Layer: language-model client, spec loading, session storage, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All external calls wrapped with timeout and error mapping
"""
