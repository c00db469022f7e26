"""
Navigation Context Module

Menu-path resolution over a persisted site map.
"""

from .navigation_helper import NavigationHelper

__all__ = ["NavigationHelper"]
