"""
dex/ - Off-chain liquidity sources.
"""
