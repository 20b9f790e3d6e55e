# =============================================================================
# tools/__init__.py
# =============================================================================
# The tool layer: everything that turns core/ adapters into callable tools.
#
#   registry.py    the static tool table and the invoke() envelope
#   mcp_server.py  the same tools exposed over MCP with FastMCP
#
# Tools hold no business logic.  They validate arguments, call one adapter
# operation, and wrap the result.
# =============================================================================
