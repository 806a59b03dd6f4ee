"""
Clients for external collaborators: Ark server info/indexer over HTTP, and
protocol surfaces for the wallet engine and the swap provider.
"""

from ark_wallet_core.clients.server_info import ArkServerClient, ScheduledSession, ServerInfo

__all__ = ["ArkServerClient", "ScheduledSession", "ServerInfo"]
