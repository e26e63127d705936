"""TaskHub — project management backend.

Users register and log in, managers run projects, developers work the
tasks assigned to them. The interesting part is the auth layer: short-lived
access JWTs, single-use server-tracked refresh tokens, and a central
role + ownership decision engine in front of every project/task route.
"""

__version__ = "0.1.0"
