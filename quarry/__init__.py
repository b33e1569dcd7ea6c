"""Quarry: a registry of project template repositories.

Quarry keeps track of remote *template repositories* (locations serving a
manifest of project scaffolding templates) and merges their manifests into a
single catalogue for project-creation tooling. The registry engine lives in
:mod:`quarry.templates`; :mod:`quarry.logging` wraps femtologging for the rest
of the package.
"""
