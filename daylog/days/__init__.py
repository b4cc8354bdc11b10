# -*- coding: utf-8 -*-
"""Daily log: one canonical record per calendar date."""
