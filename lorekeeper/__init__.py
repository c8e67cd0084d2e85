"""
Lorekeeper - a character registry behind bearer-token auth.

Run with any ASGI server, e.g.:
    uvicorn lorekeeper.api.app:app
"""

__version__ = "0.1.0"
