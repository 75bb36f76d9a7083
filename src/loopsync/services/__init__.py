"""Service layer: the state container and the sync machinery around it.

Services may import from domain, infrastructure, and plugins.
They must never import from commands or output.
"""
