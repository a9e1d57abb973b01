"""
Configuration management package for the Resource Finder.

This package provides configuration parsing, validation, and template
generation for the Resource Finder.
"""

from .parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    load_config,
    validate_config_file,
    create_config_template
)

__all__ = [
    'ConfigParser',
    'ConfigParseResult', 
    'ConfigurationError',
    'load_config',
    'validate_config_file',
    'create_config_template'
]