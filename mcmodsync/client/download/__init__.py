"""
mcmodsync client download package
"""

from .manager import DownloadManager

__all__ = ['DownloadManager']
