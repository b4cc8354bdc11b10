# -*- coding: utf-8 -*-
"""daylog: daily health log with device sync, weight trend and day summaries."""

__version__ = "1.0.0"
