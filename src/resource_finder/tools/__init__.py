"""
Search tools for the Resource Finder.

This module contains the matching, filtering, scanning and traversal
components used by the search coordinator and the filesystem provider.
The coordinator itself lives in ``resource_finder.tools.search_coordinator``.
"""
