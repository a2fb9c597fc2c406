"""Unit tests for pnlplan web route modules.

Routes are exercised through the full application with ``get_session``
patched, so request validation and error handlers run as in production.
"""
