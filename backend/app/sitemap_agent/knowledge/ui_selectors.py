"""
UI Selectors - Pre-seeded Selector Catalogs

Container selectors for each navigation section, the feature probe
catalog used when capturing page metadata, and common selectors
shared by the explorer and the action executor.
"""

from typing import Dict, List, Tuple

from ..models import FeatureKind, SiteSection


COMMON_SELECTORS: Dict[str, str] = {
    "page_title": "h1, h2, .page-title",
    "loading_spinner": ".spinner, .loading, [role='status']",
    "modal": ".modal, [role='dialog'], .modal-dialog",
    "submit_button": "button[type='submit'], input[type='submit']",
    "form": "form",
}

LOGIN_SELECTORS: Dict[str, str] = {
    "email_input": (
        "input[type='email'], input[name='email'], input[name='username'], "
        "input[name='user_id'], input[name='login'], input[name='account'], "
        "input[id*='email' i], input[id*='username' i], input[id*='user' i]"
    ),
    "password_input": "input[type='password'], input[name='password']",
    "login_button": (
        "button[type='submit']:has-text('Login'), button:has-text('Sign In'), "
        "button:has-text('로그인'), input[type='submit'], button[type='submit']"
    ),
}

DATA_SELECTORS: Dict[str, str] = {
    "table": "table, .table, .members-list, .data-table",
    "search_input": "input[type='search'], input[placeholder*='Search'], input[name='search']",
}

# Tried in order; the first visible container wins for its section
SECTION_CONTAINER_SELECTORS: Dict[SiteSection, List[str]] = {
    SiteSection.HEADER: ["header nav", "header", ".navbar", "[role='navigation']", "nav"],
    SiteSection.SIDEBAR: ["aside", ".sidebar", "[data-sidebar]", "[role='menu']"],
    SiteSection.FOOTER: ["footer nav", "footer", ".footer-nav"],
    SiteSection.MAIN: ["main nav", "main", ".main-nav", ".content-nav"],
}

MENU_ITEM_SELECTOR = "li"
MENU_TRIGGER_SELECTOR = ":scope > a, :scope > button, :scope > [role='menuitem']"
MENU_FLAT_TRIGGER_SELECTOR = "a, button, [role='menuitem']"
SUBMENU_SELECTOR = ":scope > ul, :scope > ol, :scope > .submenu, :scope > .dropdown-menu"

# (selector, kind, description), probed in this order
FEATURE_PROBES: List[Tuple[str, FeatureKind, str]] = [
    (DATA_SELECTORS["table"], FeatureKind.TABLE, "Data table"),
    (COMMON_SELECTORS["form"], FeatureKind.FORM, "Form"),
    (DATA_SELECTORS["search_input"], FeatureKind.SEARCH, "Search"),
    (".filter, [data-filter]", FeatureKind.FILTER, "Filter"),
    (COMMON_SELECTORS["modal"], FeatureKind.MODAL, "Modal"),
    (".card, .panel, .widget", FeatureKind.CARD, "Card"),
    (".chart, canvas, [data-chart]", FeatureKind.CHART, "Chart"),
    (".stats, .kpi, .summary", FeatureKind.STATS, "Statistics"),
    (".btn-group, .button-group", FeatureKind.BUTTON_GROUP, "Button group"),
]
