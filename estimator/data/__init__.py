"""Snapshot file loading"""
from .loaders import EstimatorSnapshot, SnapshotLoader, load_snapshot

__all__ = ['EstimatorSnapshot', 'SnapshotLoader', 'load_snapshot']
