"""
app/plugins package marker.

Submodules are imported directly (``app.plugins.registry``,
``app.plugins.manager``, ...); the services layer imports
``app.plugins.errors`` while ``app.plugins.base`` imports the services layer.
"""
