"""
Package marker for source code under `src.price_adjustment`.
It groups the price adjustment engine, guard-rail validation, repack pricing, and bulk preview workflow.
Most functionality lives in the sibling modules; this file intentionally stays lightweight.
"""
