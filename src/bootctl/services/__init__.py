"""Service layer — bootstrap, identity, alerts, contacts.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
