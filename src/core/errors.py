"""Errors raised across the core/adapter boundary."""


class ResolverError(RuntimeError):
    """The link-resolution service failed or returned an unusable payload."""
