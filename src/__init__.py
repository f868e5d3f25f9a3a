"""
Package marker for source code under `src`.
Pricing logic lives in `src.price_adjustment`; shared settings and logging helpers live in `src.common`.
"""
