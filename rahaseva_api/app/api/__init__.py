"""
HTTP API package.

``router`` collects the domain routers from ``endpoints``; ``deps``
holds the dependencies they share.
"""
