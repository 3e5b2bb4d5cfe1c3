"""Decision Router: conversational decision-routing engine.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
