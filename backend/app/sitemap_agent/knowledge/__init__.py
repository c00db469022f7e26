"""
Knowledge Module

Selector catalogs and the persisted site map.
"""

from .ui_selectors import SECTION_CONTAINER_SELECTORS, FEATURE_PROBES, COMMON_SELECTORS, LOGIN_SELECTORS
from .site_map_store import SiteMapStore, get_site_map_store, reset_site_map_store

__all__ = [
    "SECTION_CONTAINER_SELECTORS",
    "FEATURE_PROBES",
    "COMMON_SELECTORS",
    "LOGIN_SELECTORS",
    "SiteMapStore",
    "get_site_map_store",
    "reset_site_map_store"
]
