"""
Полный цикл обработки одного документа: разбор -> заголовок -> разметка -> вывод.

Используется и в CLI (один документ со stdin), и на сервере (один документ
на соединение).
"""

import logging
from typing import Optional, Union

from . import __version__
from .document import BOUNDARY_MARKER, Document, parse_document
from .interfaces.annotation import Annotator

logger = logging.getLogger(__name__)

OPINIONS_LAYER = "opinions"


class LanguageMismatchError(ValueError):
    """Язык документа не совпадает с запрошенным."""


def check_language(document: Document, language: Optional[str]) -> None:
    """Сверяет язык документа с параметром; документ без языка получает заданный."""
    if not language:
        return
    if document.lang is None:
        document.lang = language
        return
    if document.lang.lower() != language.lower():
        raise LanguageMismatchError(
            f"Язык в NAF ({document.lang}) и параметр --language ({language}) не совпадают"
        )


def annotate_document(annotator: Annotator, document: Document) -> Document:
    """Размечает документ и записывает в заголовок время работы модуля."""
    lp = document.add_linguistic_processor(
        OPINIONS_LAYER, f"opinion-tagger-{annotator.model_name()}", __version__)
    lp.set_begin_timestamp()
    annotator.annotate(document)
    lp.set_end_timestamp()
    return document


def annotate_payload(annotator: Annotator, data: Union[bytes, str], output_format: str = "naf",
                     language: Optional[str] = None, boundary_marker: str = BOUNDARY_MARKER) -> str:
    """
    Разбирает NAF, размечает и сериализует результат.

    Raises:
        DocumentFormatError: некорректный NAF
        LanguageMismatchError: язык документа не совпадает с language
    """
    document = parse_document(data, boundary_marker=boundary_marker)
    check_language(document, language)
    annotate_document(annotator, document)
    return annotator.serialize(document, output_format)
