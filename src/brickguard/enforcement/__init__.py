"""Microbrick enforcement.

- ownership: bounds-checked owner resolution and violator collection
- engine: warn/clear/ban decisions and their application
- rewriter: filtered snapshot that restores over-deleted content
- reconcile: stale timer sweep
- pipeline: one pass, end to end
"""
