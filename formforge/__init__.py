"""
formforge

Builds and edits form-js component trees for MCP clients.
"""

__version__ = "1.0.0"
