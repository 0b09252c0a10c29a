"""Interfaces (application boundary) for VESTIBULE.

Defines framework-free contracts: ABCs and small DTOs shared by adapters and
the composition root (the user backend contract, clocks, ID/token generators,
password hashers). Storage details stay out of this package.

Dependency rule: this package is independent; do not import from any
`vestibule.*` modules outside `vestibule.interfaces`. It may be imported by
`vestibule.adapters`, `vestibule.bootstrap` and `vestibule.entrypoints`.
"""
