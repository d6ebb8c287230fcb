"""Financial projection and liquidity decision engine."""

__version__ = "0.1.0"
