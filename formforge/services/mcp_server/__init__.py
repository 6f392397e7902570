"""
formforge MCP server package.

Exposes every form engine operation as an MCP tool.
"""
