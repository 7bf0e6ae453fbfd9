"""
modelservice - generic async CRUD services.

Translates query-string style filter and pagination parameters into
structured queries against pluggable persistence backends, and coordinates
bulk update/delete with per-document success and failure accounting.
"""

__version__ = "0.1.0"
