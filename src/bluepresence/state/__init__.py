"""State layer.

This package owns the per-entity region memory and is the only place
where region-membership snapshots are diffed into transition events.
"""
