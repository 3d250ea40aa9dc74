# routes/__init__.py
"""
routes/__init__.py
------------------------------------------------------------
Routes package. No side effects here; routers are mounted in main.create_app().
"""

ROUTES_PACKAGE_VERSION = "1.0.0"

__all__ = ["ROUTES_PACKAGE_VERSION"]
