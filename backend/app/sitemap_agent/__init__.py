"""
Site Map Agent

Discovers a web application's navigable structure and resolves
natural-language element descriptions during automated testing:
- Scans header/sidebar/main/footer navigation into a menu tree
- Crawls menu links breadth-first and records per-page UI features
- Persists one merged map per test run, across authenticated roles
- Resolves "login button" style descriptions through ordered heuristics
- Escalates to a language model only when every heuristic misses
"""

from .models import (
    SiteSection,
    FeatureKind,
    PageFeature,
    MenuNode,
    PageMetadata,
    SiteMap,
    merge_site_maps
)
from .config import AgentSettings, validate_env
from .core.errors import (
    SiteMapAgentError,
    LocatorError,
    LocatorNotFoundError,
    SiteMapNotFoundError,
    MenuPathNotFoundError,
    NavigationFailedError,
    ConfigurationError
)
from .core.locator_engine import LocatorEngine
from .core.action_executor import SafeActionExecutor
from .knowledge.site_map_store import SiteMapStore, get_site_map_store, reset_site_map_store
from .explorer.site_map_builder import SiteMapBuilder
from .explorer.role_explorer import SiteMapExplorer, RoleCredentials
from .context.navigation_helper import NavigationHelper
from .brain.ai_locator import AILocator

__all__ = [
    # Model
    "SiteSection",
    "FeatureKind",
    "PageFeature",
    "MenuNode",
    "PageMetadata",
    "SiteMap",
    "merge_site_maps",
    # Config & errors
    "AgentSettings",
    "validate_env",
    "SiteMapAgentError",
    "LocatorError",
    "LocatorNotFoundError",
    "SiteMapNotFoundError",
    "MenuPathNotFoundError",
    "NavigationFailedError",
    "ConfigurationError",
    # Location
    "LocatorEngine",
    "SafeActionExecutor",
    "AILocator",
    # Site map
    "SiteMapStore",
    "get_site_map_store",
    "reset_site_map_store",
    "SiteMapBuilder",
    "SiteMapExplorer",
    "RoleCredentials",
    "NavigationHelper"
]

__version__ = "1.0.0"
