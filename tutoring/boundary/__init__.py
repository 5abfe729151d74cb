"""
Boundary layer for external system integrations.

Handles all interactions with external systems (database, notification delivery).
Provides adapters for infrastructure dependencies.
"""
