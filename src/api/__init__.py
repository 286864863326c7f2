"""
API module for liveness monitor reports and health
"""

from .main_api import MonitorAPI
from .monitor_routes import create_monitor_routes
from .system_routes import create_system_routes

__all__ = ['MonitorAPI', 'create_monitor_routes', 'create_system_routes']
