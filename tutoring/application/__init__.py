"""
Application layer: booking use cases orchestrated over the boundary adapters.
"""
