"""Service Layer: async orchestration around the pure core.

Invariants:
    - Every language-model consumer has a deterministic fallback branch
    - Services never raise language-model failures to their callers
"""
