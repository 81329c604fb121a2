"""Application layer: DTOs, ports (interfaces), services and use cases.

Depends on the domain layer only; infrastructure is reached through the
protocols in fixlify.application.interfaces.
"""
