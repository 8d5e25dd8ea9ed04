"""Core domain package for lineglass.

Core contains filtering, spam limiting, reply rendering, and orchestration
logic without any Matrix or HTTP-specific code, keeping the business logic
portable.
"""
