"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Unit conversions, calibration reference, provider endpoints
- exceptions: Custom exception hierarchy
"""
