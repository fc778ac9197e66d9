"""gini - a local checkpoint system for project directories.

Snapshots a working directory into a content-addressed object store and
restores any earlier snapshot, taking a backup first.
"""

__version__ = "0.2.0"
