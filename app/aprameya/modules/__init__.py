"""
Feature modules live under this package.

Each module owns its models, service functions and blueprint, while reusing the
platform primitives (sessions, role policy, gateway, audit, DB session).
"""
