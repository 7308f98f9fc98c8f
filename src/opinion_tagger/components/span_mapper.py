"""
Перевод смещений токенов, выданных классификатором, в Span документа.
"""

from typing import Sequence

from ..document import Sentence, Span


def to_span(sentence: Sentence, token_ids: Sequence[str], start: int, end: int) -> Span:
    """
    Строит Span по полуинтервалу [start, end) над идентификаторами токенов.

    Обрезки нет: выход за границы предложения считается ошибкой вызывающего кода.

    Raises:
        ValueError: если не выполняется 0 <= start < end <= len(sentence)
    """
    if not 0 <= start < end <= len(sentence):
        raise ValueError(
            f"Некорректный отрезок [{start}, {end}) для предложения {sentence.number} "
            f"длины {len(sentence)}"
        )
    if len(token_ids) != len(sentence):
        raise ValueError(
            f"Число идентификаторов ({len(token_ids)}) не совпадает с длиной предложения {sentence.number}"
        )
    return Span(start=start, end=end, token_ids=tuple(token_ids[start:end]))


def whole_sentence_span(sentence: Sentence) -> Span:
    return to_span(sentence, sentence.token_ids, 0, len(sentence))
