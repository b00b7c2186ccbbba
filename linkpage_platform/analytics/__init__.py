"""
Event analytics for link pages: recording, range queries and dashboard aggregation.
"""
