"""
                Coffee Shop Ordering System

Backend for a coffee-shop ordering app (catalog, auth, cart, orders,
search) plus a Python client that mirrors the mobile app's state.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
