"""
System components for moviemath.

This module provides configuration management. The HTTP server lives in
moviemath.components.server.
"""

from moviemath.components.config import Config, ConfigManager
