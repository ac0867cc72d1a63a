"""Properties app package.

Property listings, their room types and the pricing and availability
calendar of every room type.
"""
