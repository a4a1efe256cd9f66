"""Errors raised while talking to the documentation MCP server."""


class ProxyError(Exception):
    """Base class for documentation proxy errors."""


class UpstreamUnavailable(ProxyError):
    """Raised when the remote MCP server cannot be reached or answers with an error."""


class HandshakeFailure(UpstreamUnavailable):
    """Raised when the optional ``initialize`` handshake fails."""


class RegistrationFailure(ProxyError):
    """Raised when a single remote tool cannot be registered locally."""
