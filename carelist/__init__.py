"""
Care Worklist - daily caregiver task aggregation.

Builds a caregiver's per-resident daily worklist from staff assignments,
vital-sign records and assessment records.
"""

__version__ = "1.0.0"
