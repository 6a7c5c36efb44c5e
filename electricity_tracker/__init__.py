"""
Electricity Tracker - Source Package

A household electricity cost tracker with two features:
an equipment-based daily usage calculator and a meter reading tracker.

DESIGN PRINCIPLES:
1. Calculations are pure functions of explicit inputs
2. Persistence never raises; every storage call returns a result
3. Storage layer is swappable (local files, REST API, document store)
4. Every user action is logged
"""

__version__ = "1.0.0"
__author__ = "Electricity Tracker Team"
