"""
Сборка слоя мнений документа.
"""

from typing import Optional

from ..document import Document, Opinion, OpinionExpression, Span


def attach(document: Document, target: Optional[Span], expression: OpinionExpression) -> Opinion:
    """Добавляет новое мнение; существующие мнения не меняются, дубликаты не ищутся."""
    opinion = Opinion(id=document.next_opinion_id(), expression=expression, target=target)
    document.opinions.append(opinion)
    return opinion
