"""Lawn Estimator.

Estimates the mowable lawn area of a property from user-drawn map
polygons, subtracting user-declared exclusions and (optionally) building
footprints from OpenStreetMap, and reports square feet plus an estimated
mowing time.
"""

__version__ = "0.1.0"
