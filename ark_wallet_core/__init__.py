"""
Ark Wallet Core: decision-making core of a self-custodial Bitcoin/Ark wallet.

Classifies payment destinations, validates amounts against per-venue limits,
quotes fees, and tracks the lifecycle of off-chain VTXOs and on-chain boarding
outputs so funds are renewed before their batch expires. Signing, broadcasting
and the Lightning swap state machine stay with external collaborators.
"""

__version__ = "0.1.0"
