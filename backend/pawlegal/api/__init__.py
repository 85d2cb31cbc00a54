"""Paw Legal REST API package.

Sub-modules expose FastAPI routers for each domain:
- trash: recycle bin listing, restore, permanent deletion and purge
- logs: audit log listing, statistics and the daily DLOG PDF export
- dossiers: dossier recap (JSON and PDF)
- deletions: DELETE endpoints that move entities to the trash
"""
