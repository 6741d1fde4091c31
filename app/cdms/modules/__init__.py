"""
Feature modules live under this package.

Keep module boundaries clean: each module owns its routes and domain logic,
while reusing platform primitives (audit, identity, state store).
"""
