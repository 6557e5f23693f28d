"""
mcmodsync - keeps a client mods folder in sync with a server mods folder
"""

__version__ = "1.0.0"
