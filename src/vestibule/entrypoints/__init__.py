"""Entrypoints (inbound adapters) for VESTIBULE.

Expose the user backend to operators: parse and validate inputs, obtain a
backend through `vestibule.bootstrap`, and present results.

Dependency rule: may import `vestibule.bootstrap`, `vestibule.config` and
`vestibule.interfaces`; avoid importing concrete backends directly.
"""
