"""Core backend infrastructure for the Ball Mtaani API.

This package contains configuration, logging, database, error and dependency
helpers used by the FastAPI application entrypoint.
"""
