"""Bootstrap (composition root) for VESTIBULE.

Builds a ready-to-use `UserBackend` from configuration: picks the concrete
backend, creates the engine, and injects the default collaborators.

Import rules:
- Entry points import *this* package, not `vestibule.adapters`.
- This package may import `vestibule.adapters`, `vestibule.interfaces` and
  `vestibule.config`.
- Inner layers must not import `vestibule.bootstrap`.
"""

from .bootstrap import AppContainer, bootstrap, build_user_backend

__all__ = ["AppContainer", "bootstrap", "build_user_backend"]
