"""
Базовые классы классификаторов и адаптивная память разметчиков.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from ..interfaces.annotation import SequenceLabel


class BaseClassifierModel(ABC):
    """Базовый класс модели, загружаемой из файла или каталога."""

    def __init__(self, model_path: str) -> None:
        self.model_path = str(model_path)

    @property
    def model_name(self) -> str:
        """Имя модели без расширения (для заголовка NAF и словарных ресурсов)."""
        return Path(self.model_path).stem or Path(self.model_path).name

    @abstractmethod
    def load(self) -> None:
        """Загружает модель в память (ленивая загрузка)."""
        pass

    @abstractmethod
    def unload(self) -> None:
        """Выгружает модель из памяти."""
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        """Возвращает информацию о модели (путь, тип, загружена ли)."""
        pass


class PreviousLabelMemory:
    """
    Адаптивная память разметчика в пределах документа.

    Запоминает размеченные фразы (без учёта регистра) и доразмечает их
    повторные вхождения в следующих предложениях, если модель их пропустила.
    """

    def __init__(self) -> None:
        self._previous: Dict[Tuple[str, ...], str] = {}

    def __len__(self) -> int:
        return len(self._previous)

    def clear(self) -> None:
        self._previous.clear()

    def apply(self, tokens: Sequence[str], labels: List[SequenceLabel]) -> List[SequenceLabel]:
        lowered = [t.lower() for t in tokens]
        covered = set()
        for label in labels:
            covered.update(range(label.start, label.end))

        extra: List[SequenceLabel] = []
        # Длинные фразы имеют приоритет
        for phrase, label_type in sorted(self._previous.items(), key=lambda kv: -len(kv[0])):
            n = len(phrase)
            for i in range(len(lowered) - n + 1):
                window = range(i, i + n)
                if tuple(lowered[i:i + n]) == phrase and covered.isdisjoint(window):
                    extra.append(SequenceLabel(i, i + n, label_type))
                    covered.update(window)

        result = sorted(labels + extra, key=lambda label: label.start)
        for label in result:
            self._previous[tuple(lowered[label.start:label.end])] = label.type
        return result
