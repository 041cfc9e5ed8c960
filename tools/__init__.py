# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP tool wrappers.  Each tool in mcp_server.py:
#   1. takes typed arguments (FastMCP validates them)
#   2. forwards them to core.operations.invoke()
#   3. returns Brinqa's payload, or raises ToolError with "Error: ..."
#
# Tools hold no query or authentication logic; that is all in core/.
# =============================================================================
