"""Users app package.

Defines the marketplace account model with roles for customers, providers
and administrators, plus the JWT authentication endpoints. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout the
project.
"""
