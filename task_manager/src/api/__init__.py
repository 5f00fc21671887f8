"""
Task Manager backend package.

The FastAPI application lives in ``src.api.main`` (``from src.api.main import app``).
It is not imported here so that importing a submodule such as
``src.api.security`` does not configure logging or read settings.
"""
