"""VESTIBULE

A storage-agnostic user-account layer: account management, password
authentication with expiring sessions, and single-use password-reset and
activation tokens behind one backend contract.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
