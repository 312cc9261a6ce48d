"""Transport layer: the pipelined TCP session."""

from .session import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TIMEOUT, Session
