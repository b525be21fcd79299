"""
Registrar - student record management backend.

Duplicate-candidate detection over stored student identities.
"""

__version__ = "0.1.0"
