# -*- coding: utf-8 -*-
"""
Day summaries: generation, caching and the background queue
"""

from .cache import PENDING_ANNOTATION, AnnotationCache, AnnotationOutcome
from .tasks import BackgroundQueue

__all__ = [
    'PENDING_ANNOTATION',
    'AnnotationCache',
    'AnnotationOutcome',
    'BackgroundQueue',
]
