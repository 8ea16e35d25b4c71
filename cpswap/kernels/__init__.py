"""
Kernel layer.

Integer-only formulas shared by the pricing engine, the liquidity manager
and the reference pair implementation.
"""
