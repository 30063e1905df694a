"""
Figurelib
=========

Matplotlib figures for inspecting fitted chains.
"""

from .trace import plot_trace, plot_coassignment
