"""
trayroute.service - Layout service facade
"""

from .layout_service import LayoutService, LayoutRunResult

__all__ = ['LayoutService', 'LayoutRunResult']
