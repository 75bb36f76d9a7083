"""Domain layer: state tree, actions, transition function, and policies.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
