"""Proxy management package — rotation, health checks, and failover bookkeeping."""

from sitecrawl.proxy.manager import ProxyManager
from sitecrawl.proxy.types import ProxyEndpoint, format_proxy_url

__all__ = ["ProxyEndpoint", "ProxyManager", "format_proxy_url"]
