"""
Optout Modules
==============

Feature blueprints: unsubscribe (public write), admin (token-protected view/export), ops (health).
"""
