"""
CNC Dashboard: setup wizard and backend configuration orchestrator

Configures the JSON scanner, tool manager and clamping plate manager
backends of the CNC management dashboard.
"""

try:
    from importlib.metadata import version
    __version__ = version("cnc-dashboard")
except Exception:
    __version__ = "0.0.0"  # Fallback for development

__all__ = ["__version__"]
