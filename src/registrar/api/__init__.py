"""
Registrar HTTP API.
"""
