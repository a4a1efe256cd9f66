"""
Documentation proxy: re-exposes tools from a remote MCP server (the SODAX SDK
docs hosted on GitBook) as local ``docs_*`` tools.

    RemoteToolClient  --tools/list-->  RemoteToolCache (TTL)  -->  ProxyRegistrar
           ^                                                          |
           +------------------- tools/call <--------------------------+
"""

from buildersmcp.docs.cache import RemoteToolCache
from buildersmcp.docs.errors import HandshakeFailure, ProxyError, RegistrationFailure, UpstreamUnavailable
from buildersmcp.docs.registrar import ProxyRegistrar
from buildersmcp.docs.schema import (
    ContentBlock,
    FieldSpec,
    HealthStatus,
    RemoteToolDef,
    SchemaFieldKind,
    ToolResult,
    build_params_model,
    translate_schema,
)
from buildersmcp.docs.transport import RemoteToolClient

__all__ = [
    "ContentBlock",
    "FieldSpec",
    "HandshakeFailure",
    "HealthStatus",
    "ProxyError",
    "ProxyRegistrar",
    "RegistrationFailure",
    "RemoteToolCache",
    "RemoteToolClient",
    "RemoteToolDef",
    "SchemaFieldKind",
    "ToolResult",
    "UpstreamUnavailable",
    "build_params_model",
    "translate_schema",
]
