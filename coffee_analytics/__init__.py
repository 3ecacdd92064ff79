"""
Coffee Shop Sales Analytics

Typed sales-line facts, KPI aggregation and profit segmentation.
"""

__version__ = "1.0.0"
