"""
Кадрирование запросов сервера разметки.

Клиент -> сервер: документ построчно, затем строка "<ENDOFDOCUMENT>".
Строка "</NAF>" тоже завершает запрос (устаревший вариант, сам тег
остаётся частью документа). Конец потока также завершает запрос.
Сервер -> клиент: документ как есть, затем закрытие соединения.
"""

import logging
from typing import Iterable

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
END_OF_DOCUMENT = "<ENDOFDOCUMENT>"
LEGACY_END_TAG = "</NAF>"

BAD_DOCUMENT_MESSAGE = "Badly formatted NAF document!!"
BAD_ENCODING_MESSAGE = "UTF-8 not supported!!"
ANNOTATION_FAILED_MESSAGE = "Annotation failed!!"


def read_request(lines: Iterable[str]) -> str:
    """Собирает документ из строк до разделителя (разделитель в результат не входит)."""
    buffer = []
    for line in lines:
        line = line.rstrip("\r\n")
        if line == END_OF_DOCUMENT:
            break
        buffer.append(line + "\n")
        if line == LEGACY_END_TAG:
            logger.debug(f"Запрос завершён строкой {LEGACY_END_TAG} (устаревший разделитель)")
            break
    return "".join(buffer)


def frame_request(text: str) -> str:
    """Добавляет к документу строку-разделитель."""
    if text and not text.endswith("\n"):
        text += "\n"
    return f"{text}{END_OF_DOCUMENT}\n"


def format_error(message: str) -> str:
    """Текст ошибки, отправляемый клиенту вместо документа."""
    return f"\n-> ERROR: {message}\n"
