"""
Builders SODAX MCP Server.

Live SODAX API data and SDK documentation for developers and integration
partners, served as MCP tools:

- ``sodax_*`` tools read from api.sodax.com
- ``docs_*`` tools are proxied from the GitBook docs MCP and update with it
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"
