"""OAuth2 authorization-code gateway for the Kroger public API."""

__version__ = "0.1.0"
