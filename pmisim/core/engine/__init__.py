"""Core simulation engine.

Responsibilities:
  - Provide the pure transition, grading and commit functions.
  - Must not own history or the current-state pointer; callers store results.
"""
