"""
Version information for Voice Notes Desktop.

This file is the single source of truth for the application version.
"""

# Version components
VERSION_MAJOR = 2
VERSION_MINOR = 0
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Home page of the hosted web application
WEBSITE_URL = "https://voicenotes.com"

