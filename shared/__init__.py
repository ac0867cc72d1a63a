"""
Shared Kernel

Value objects and helpers shared by the properties and bookings apps.
"""
