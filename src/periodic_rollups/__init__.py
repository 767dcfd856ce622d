"""
Top-level package for the periodic-rollups project.

The write-side rollups live under `periodic_rollups.period_data`; the local
file-bus reader that feeds them lives under `periodic_rollups.event_bus`.
"""

__all__: list[str] = []
