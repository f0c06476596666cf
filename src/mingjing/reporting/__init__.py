"""
Reporting module for rendering and exporting analysis report cards.
"""

from .generator import ReportGenerator, ReportTheme, ReportView, theme_for_score

__all__ = ['ReportGenerator', 'ReportTheme', 'ReportView', 'theme_for_score']
