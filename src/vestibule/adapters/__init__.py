"""Adapters (infrastructure) for VESTIBULE.

Provide concrete implementations of the interfaces (user backends, clocks,
ID/token generators, password hashers), plus persistence mapping and related
wiring (engines, metadata, migrations).

Dependency rule: may import `vestibule.interfaces`; the interfaces must not
import this package.
"""
