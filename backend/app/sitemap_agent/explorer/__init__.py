"""
Site Exploration Module

Scans navigation sections, detects page features and crawls menu
links to build the site map, once per authenticated role.
"""

from .section_scanner import SectionScanner, normalize_path
from .feature_detector import FeatureDetector
from .site_map_builder import SiteMapBuilder
from .role_explorer import SiteMapExplorer, RoleCredentials, credentials_from_settings, login_with_credentials

__all__ = [
    "SectionScanner",
    "normalize_path",
    "FeatureDetector",
    "SiteMapBuilder",
    "SiteMapExplorer",
    "RoleCredentials",
    "credentials_from_settings",
    "login_with_credentials"
]
