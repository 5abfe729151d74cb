"""
Booking core: status rules, scheduling logic, exceptions and notifications.
"""
