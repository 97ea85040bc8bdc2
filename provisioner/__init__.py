"""
Tool provisioner: installs declared build tools from a cache or their origin.
"""

__version__ = "0.1.0"
