# site_search/__init__.py
"""
SiteSearch package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

# Group is exported as ``main_cli`` so that ``site_search.cli`` stays the module
from .cli import cli as main_cli  # noqa: E402
