"""Fixed-point primitives used by the pricing engine."""

from yieldswap.math.fixed_point import ONE_18, Fp

__all__ = ["Fp", "ONE_18"]
