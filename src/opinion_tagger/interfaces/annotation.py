"""
Абстрактные интерфейсы для компонентов разметки мнений.

Определяет контракты классификаторов, словаря полярности и аннотаторов,
обеспечивая единообразный API и возможность замены реализаций.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..document import Document


@dataclass(frozen=True)
class SequenceLabel:
    """Результат разметчика последовательностей: [start, end) и тип."""
    start: int
    end: int
    type: str


class AdaptiveClassifierInterface(ABC):
    """Классификатор с адаптивной памятью в пределах прохода по документу."""

    @abstractmethod
    def clear_adaptive_data(self) -> None:
        """Сбрасывает адаптивную память."""
        pass


class SequenceLabelerInterface(AdaptiveClassifierInterface):
    """Интерфейс разметчика последовательностей (цели, аспекты)."""

    @abstractmethod
    def label_sequence(self, tokens: Sequence[str]) -> List[SequenceLabel]:
        """Возвращает размеченные отрезки по смещениям токенов."""
        pass


class DocumentClassifierInterface(AdaptiveClassifierInterface):
    """Интерфейс классификатора целого предложения."""

    @property
    @abstractmethod
    def labels(self) -> List[str]:
        """Метки в порядке вектора вероятностей."""
        pass

    @abstractmethod
    def classify(self, tokens: Sequence[str]) -> str:
        """Возвращает метку для последовательности токенов."""
        pass

    @abstractmethod
    def classify_prob(self, tokens: Sequence[str]) -> np.ndarray:
        """Возвращает вероятности меток в порядке self.labels."""
        pass


class PolarityDictionaryInterface(ABC):
    """Интерфейс словаря полярности."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Имя ресурса для записи в разметку."""
        pass

    @abstractmethod
    def lookup(self, form: str) -> Optional[str]:
        """Полярность словоформы или None."""
        pass


class Annotator(ABC):
    """Основной интерфейс стратегии разметки."""

    @abstractmethod
    def annotate(self, document: Document) -> None:
        """Добавляет мнения в документ."""
        pass

    @abstractmethod
    def serialize(self, document: Document, output_format: str = "naf") -> str:
        """Сериализует размеченный документ."""
        pass

    @abstractmethod
    def model_name(self) -> str:
        """Имя модели для заголовка документа."""
        pass
