"""
Core modules for Agent Academy.

This package contains the model catalog, cost accounting, model selection,
the model gateway, feedback parsing and progress tracking.
"""
