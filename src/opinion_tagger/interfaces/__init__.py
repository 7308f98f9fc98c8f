"""
Интерфейсы для компонентов разметки мнений.

Определяет абстрактные базовые классы для всех компонентов,
обеспечивая единообразный API и возможность замены реализаций.
"""

from .annotation import (
    AdaptiveClassifierInterface,
    Annotator,
    DocumentClassifierInterface,
    PolarityDictionaryInterface,
    SequenceLabel,
    SequenceLabelerInterface,
)

__all__ = [
    'AdaptiveClassifierInterface',
    'Annotator',
    'DocumentClassifierInterface',
    'PolarityDictionaryInterface',
    'SequenceLabel',
    'SequenceLabelerInterface',
]
