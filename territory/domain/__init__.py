"""Domain layer: models, events, errors and pure domain services.

Nothing in this package performs I/O. Storage, clocks and notification
delivery are reached through the ports in territory.application.ports.
"""
