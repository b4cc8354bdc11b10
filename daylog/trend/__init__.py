# -*- coding: utf-8 -*-
"""
Weight trend
"""

from .engine import TrendDirection, TrendResult, calculate

__all__ = [
    'TrendDirection',
    'TrendResult',
    'calculate',
]
