# =============================================================================
# core/__init__.py
# =============================================================================
# Everything that talks to Brinqa lives here: settings, the session manager,
# the request executor, the query translators and the operation catalogue.
#
# Nothing in this package imports FastMCP.  The tool server in tools/ is a
# thin layer on top of core.operations.invoke().
# =============================================================================
