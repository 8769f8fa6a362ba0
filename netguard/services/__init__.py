"""Services Layer - async orchestration of the resilient-execution core.

Invariants:
    - All suspension happens here (operation await, timeout race, backoff sleep)
    - Components receive collaborators by constructor injection, no module globals
"""
