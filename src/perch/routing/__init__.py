"""Routing — convention-compiled route table and path resolution.

Resources are described during setup, compiled into an immutable
``(verb, template) -> handler`` table when the app freezes, and every
request path is resolved to one of those templates before lookup.
"""
