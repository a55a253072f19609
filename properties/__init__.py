"""
properties package

Info panel for the selected rectangle.
"""

from properties.panel import SelectionPanel

__all__ = ["SelectionPanel"]
