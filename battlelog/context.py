"""
Per-request context shared with the fetcher.

The HTTP surface stores the inbound User-Agent here so upstream calls made
while serving that request can forward it.
"""
from contextvars import ContextVar
from typing import Optional

inbound_user_agent: ContextVar[Optional[str]] = ContextVar("inbound_user_agent", default=None)
