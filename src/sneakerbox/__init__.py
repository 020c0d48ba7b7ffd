"""SneakerBox — personal sneaker-collection manager.

HTTP API for signing in (username/password or Google), keeping a
session, and managing the sneakers in your own collection.
"""

__version__ = "0.1.0"
