"""
bikeslots - slot scheduling and conflict-safe booking for a bike-service shop.
"""

__version__ = "0.1.0"
