"""
Модель размеченного документа и работа с форматом NAF.
"""

from .model import (
    BOUNDARY_MARKER,
    Document,
    LinguisticProcessor,
    Opinion,
    OpinionExpression,
    Sentence,
    Sentiment,
    Span,
    Token,
)
from .naf import DocumentFormatError, parse_document, serialize_document

__all__ = [
    'BOUNDARY_MARKER',
    'Document',
    'LinguisticProcessor',
    'Opinion',
    'OpinionExpression',
    'Sentence',
    'Sentiment',
    'Span',
    'Token',
    'DocumentFormatError',
    'parse_document',
    'serialize_document',
]
