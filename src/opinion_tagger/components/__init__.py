"""
Компоненты разметки мнений.

Каждый компонент отвечает за одну конкретную задачу:
- adaptive_state - политика сброса адаптивной памяти классификаторов
- span_mapper - перевод смещений токенов в Span документа
- opinion_assembler - добавление мнений в документ
- annotators - стратегии разметки (OTE, аспекты, полярность, ABSA)
- annotator_factory - выбор и создание стратегии
"""

from .adaptive_state import (
    AdaptiveStateController,
    ClearFeaturesPolicy,
    should_reset_after,
    should_reset_before,
)
from .span_mapper import to_span, whole_sentence_span
from .opinion_assembler import attach
from .annotators import (
    AbsaAnnotator,
    BaseAnnotator,
    DocumentAspectAnnotator,
    PolarityAnnotator,
    SequenceAspectAnnotator,
    TargetAnnotator,
)
from .annotator_factory import AnnotatorFactory, AnnotatorType

__all__ = [
    'AdaptiveStateController',
    'ClearFeaturesPolicy',
    'should_reset_after',
    'should_reset_before',
    'to_span',
    'whole_sentence_span',
    'attach',
    'AbsaAnnotator',
    'BaseAnnotator',
    'DocumentAspectAnnotator',
    'PolarityAnnotator',
    'SequenceAspectAnnotator',
    'TargetAnnotator',
    'AnnotatorFactory',
    'AnnotatorType',
]
