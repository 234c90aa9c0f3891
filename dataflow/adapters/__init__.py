"""
Adapters

Thin async wrappers around the outside world:
- http_client: aiohttp session for the price providers
- nats_client: NATS publisher for chart updates
"""

from dataflow.adapters.http_client import HttpClient, HttpConfig
from dataflow.adapters.nats_client import NatsClient, NatsConfig, Topics

__all__ = ["HttpClient", "HttpConfig", "NatsClient", "NatsConfig", "Topics"]
