"""Infrastructure layer: storage adapters, remote store, identity source.

Infrastructure may import from domain and the shared service helpers,
never from commands, output, or the sync services themselves.
"""
