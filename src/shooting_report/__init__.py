"""
shooting_report
NYPD Shooting Incident Report: fetch, clean, aggregate, plot, regress.
"""

__version__ = "0.1.0"
