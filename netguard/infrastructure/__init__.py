"""Infrastructure Layer - transports, alert sinks and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - Transport failures are mapped to TransportError(kind) before leaving this layer
"""
