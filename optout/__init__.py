"""
Optout - Central Unsubscribe Registry
=====================================

A small Flask service that:
- Records email opt-outs posted by any of our sites (one row per email)
- Lets an operator with the shared admin token view and export the list
- Exposes a /health probe for uptime monitors

Usage:
    from optout import create_app

    app = create_app()

Run locally:
    flask --app optout init-db
    flask --app optout run
"""

__version__ = '0.1.0'

from .extension import Optout, create_app

__all__ = ['Optout', 'create_app']
