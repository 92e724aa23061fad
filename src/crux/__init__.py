"""
crux: client-side network and protocol layer for the Crux simulation server.
"""

__version__ = "0.1.0"
