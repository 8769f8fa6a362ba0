"""Core Layer - pure domain logic, no IO, no async.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
    - All functions are pure; randomness is injectable

Design Decisions:
    - Functional core separated from imperative shell: retry decisions are
      testable without an event loop
"""
