"""
MCP Tools

All tool implementations live in this package.
Each tool has the @system_tool decorator which registers it automatically.

Structure:
- forms.py       - form lifecycle, inspection, layout, batches, history
- components.py  - add, delete, move, duplicate, replace, list components
- properties.py  - property, validation, conditional, layout, options setters
"""

# Import all tool modules to trigger registration
# The @system_tool decorator registers each function in the global registry
from formforge.services.mcp_server.tools import forms  # noqa: F401
from formforge.services.mcp_server.tools import components  # noqa: F401
from formforge.services.mcp_server.tools import properties  # noqa: F401
