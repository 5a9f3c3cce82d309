"""
Upstream provider clients for Agent Academy.

Provides OpenAI-compatible chat clients for each supported vendor.
"""

from .client import Completion, ProviderClient, UpstreamError, build_provider_clients

__all__ = ["Completion", "ProviderClient", "UpstreamError", "build_provider_clients"]
