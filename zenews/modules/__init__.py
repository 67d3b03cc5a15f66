"""
ZE News Modules
===============

Flask blueprint modules for the ZE News site and its admin dashboard.
"""

__all__ = ['auth', 'courses', 'dashboard', 'email', 'fact_check', 'media', 'news', 'ops']
