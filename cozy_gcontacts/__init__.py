"""
cozy_gcontacts - Bidirectional contact synchronization between a Cozy
instance and Google Contacts.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
