"""
cpswap: constant-product swap and liquidity engine
"""

__version__ = "0.1.0"
