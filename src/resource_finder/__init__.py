"""
Resource Finder - Core Package

Locates resources matching glob, content, size and date criteria, and lists
and summarizes resources across data sources through one provider contract.
"""

__version__ = "0.1.0"
__author__ = "Resource Finder Team"
