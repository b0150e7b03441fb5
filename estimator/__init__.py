"""
Estimator - construction cost and schedule estimation engine.

Unit price analysis (APU), earned value management, Pareto/ABC
classification and time-cost trade-off simulation over in-memory
catalog and budget snapshots.
"""

__version__ = "1.0.0"
