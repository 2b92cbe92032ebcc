"""stakepool: share-based accounting for a pooled base asset."""

__version__ = "0.1.0"
