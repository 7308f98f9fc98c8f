"""
Opinion Tagger - разметка мнений в NAF-документах

Этот модуль предоставляет инструменты для:
- Извлечения целей мнений (OTE)
- Извлечения аспектов (разметчик последовательностей или классификатор предложений)
- Определения полярности (модель и/или словарь)
- Совместной разметки целей, аспектов и полярности (ABSA)
- Обслуживания разметки по TCP
"""

__version__ = "0.1.0"
__author__ = "Sergey"

from .document import Document, DocumentFormatError, parse_document, serialize_document
from .components.annotator_factory import AnnotatorFactory, AnnotatorType
from .pipeline import annotate_payload

__all__ = [
    "Document",
    "DocumentFormatError",
    "parse_document",
    "serialize_document",
    "AnnotatorFactory",
    "AnnotatorType",
    "annotate_payload",
]
