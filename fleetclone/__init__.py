"""
fleetclone: mirror every project of a GitLab instance to local disk.

Enumerates all visible projects through the paginated API and clones
them concurrently with a bounded worker pool.
"""

__version__ = "1.0.0"
