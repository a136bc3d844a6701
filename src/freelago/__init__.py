# src/freelago/__init__.py
"""
Freelago
========
HTTP API backing the Freelago task marketplace.

Clients create tasks, browse them newest first, look tasks up by identifier
or by owner email, update a task's editable fields and delete tasks. Every
route is a single-document operation on the ``tasks`` collection of the
``freelagoDB`` MongoDB database.

Import Guide:
-------------
Application:
    from freelago.main import app, create_app

Storage:
    from freelago.storage import MongoTaskStore, InMemoryTaskStore

Configuration:
    from freelago.config import AppConfig, get_app_config
"""

from __future__ import annotations

__version__ = "1.0.0"
__author__ = "Freelago Team"

__all__ = [
    "__version__",
    "__author__",
]
