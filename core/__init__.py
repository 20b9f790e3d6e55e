# =============================================================================
# core/__init__.py
# =============================================================================
# ClickUp and Google Ads adapters, the report analyzer, and the pieces they
# share (settings, errors, data models, number normalization).
#
# Nothing in this package imports FastMCP.  Adapters take a Settings object
# at construction and never read the environment themselves, so they can be
# built in a test with fake transports and no credentials.
# =============================================================================
