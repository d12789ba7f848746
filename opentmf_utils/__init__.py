"""
opentmf-utils

Command line utilities for the OpenTMF instrument abstraction layer.
"""

__version__ = "0.1.0"
