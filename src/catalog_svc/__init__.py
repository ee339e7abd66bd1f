"""
Movie Catalog Service

A small catalog of movie records providing:
- A record store with unique, never-reused ids and atomic updates
- Genre / listing queries over consistent snapshots
- Linking of uploaded files to records, in whichever order they arrive
"""

__version__ = "0.1.0"
