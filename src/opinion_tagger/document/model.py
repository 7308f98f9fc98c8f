"""
Структуры данных размеченного документа.

Документ хранит предложения в порядке чтения, слой мнений (только
добавление) и словарные оценки тональности, привязанные к токенам.
Мнения входного документа читаются для справки; в выводе они остаются
такими, какими были во входном NAF.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

BOUNDARY_MARKER = "-DOCSTART-"


@dataclass(frozen=True)
class Token:
    """Токен (wf) документа."""
    id: str
    form: str
    sent: int
    lemma: Optional[str] = None
    term_id: Optional[str] = None


@dataclass(frozen=True)
class Span:
    """Полуинтервал [start, end) по идентификаторам токенов предложения."""
    start: int
    end: int
    token_ids: Tuple[str, ...]

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class Sentence:
    """Предложение: упорядоченная последовательность токенов."""
    number: int
    tokens: List[Token]
    boundary_marker: str = BOUNDARY_MARKER

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def forms(self) -> List[str]:
        return [t.form for t in self.tokens]

    @property
    def token_ids(self) -> List[str]:
        return [t.id for t in self.tokens]

    @property
    def is_boundary(self) -> bool:
        """Начинается ли предложение с маркера границы документа."""
        return bool(self.tokens) and self.tokens[0].form.startswith(self.boundary_marker)


@dataclass
class OpinionExpression:
    span: Span
    polarity: Optional[str] = None
    feature: Optional[str] = None


@dataclass
class Opinion:
    id: str
    expression: OpinionExpression
    target: Optional[Span] = None


@dataclass(frozen=True)
class Sentiment:
    """Словарная тональность токена."""
    polarity: str
    resource: str


@dataclass
class LinguisticProcessor:
    """Запись заголовка о модуле, который добавил слой."""
    layer: str
    name: str
    version: str
    begin_timestamp: Optional[str] = None
    end_timestamp: Optional[str] = None

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S%z")

    def set_begin_timestamp(self) -> None:
        self.begin_timestamp = self._now()

    def set_end_timestamp(self) -> None:
        self.end_timestamp = self._now()


@dataclass
class Document:
    """Размеченный документ."""
    lang: Optional[str]
    sentences: List[Sentence]
    opinions: List[Opinion] = field(default_factory=list)
    sentiments: Dict[str, Sentiment] = field(default_factory=dict)
    linguistic_processors: List[LinguisticProcessor] = field(default_factory=list)
    # Исходное XML-дерево; нужно только сериализатору
    source: object = field(default=None, repr=False, compare=False)
    # Что уже было во входном NAF: сериализатор дописывает только новое
    source_opinion_ids: Set[str] = field(default_factory=set, repr=False, compare=False)
    source_sentiments: Dict[str, Sentiment] = field(default_factory=dict, repr=False, compare=False)
    source_processor_count: int = field(default=0, repr=False, compare=False)

    @property
    def tokens(self) -> List[Token]:
        """Все токены документа в порядке чтения."""
        return [t for sentence in self.sentences for t in sentence.tokens]

    @property
    def new_opinions(self) -> List[Opinion]:
        """Мнения, добавленные после чтения документа."""
        return [o for o in self.opinions if o.id not in self.source_opinion_ids]

    @property
    def new_sentiments(self) -> Dict[str, Sentiment]:
        """Тональности, которых не было во входном документе в том же виде."""
        return {
            token_id: sentiment
            for token_id, sentiment in self.sentiments.items()
            if self.source_sentiments.get(token_id) != sentiment
        }

    @property
    def new_linguistic_processors(self) -> List[LinguisticProcessor]:
        return self.linguistic_processors[self.source_processor_count:]

    def next_opinion_id(self) -> str:
        """Свободный идентификатор, включая мнения входного слоя, которые не удалось прочитать."""
        existing = {o.id for o in self.opinions} | self.source_opinion_ids
        n = len(self.opinions) + 1
        while f"o{n}" in existing:
            n += 1
        return f"o{n}"

    def add_linguistic_processor(self, layer: str, name: str, version: str) -> LinguisticProcessor:
        lp = LinguisticProcessor(layer=layer, name=name, version=version)
        self.linguistic_processors.append(lp)
        return lp
