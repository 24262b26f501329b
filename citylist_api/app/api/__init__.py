"""
API package containing versioned routes.

Versions live in subpackages such as ``v1``, each exposing a top level
``router``.  Shared helpers (the response envelope, dependencies) sit
next to the version packages.
"""
