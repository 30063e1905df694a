"""
Simulator
=========

Simulates students practicing items from BKT models with a known item -> skill partition.
"""

from .simulator import Simulator
