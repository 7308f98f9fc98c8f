"""
Обёртки над spaCy, реализующие интерфейсы разметчика и классификатора.

Модель загружается из каталога (spacy.load). Текст заранее токенизирован,
поэтому Doc строится из готовых слов и прогоняется по компонентам конвейера.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

try:
    import spacy
    from spacy.tokens import Doc
except Exception:  # pragma: no cover
    spacy = None  # type: ignore
    Doc = None  # type: ignore

from ..interfaces.annotation import (
    DocumentClassifierInterface,
    SequenceLabel,
    SequenceLabelerInterface,
)
from .base_model import BaseClassifierModel, PreviousLabelMemory

logger = logging.getLogger(__name__)


class _SpacyBackedModel(BaseClassifierModel):

    def __init__(self, model_path: str) -> None:
        super().__init__(model_path)
        self._nlp = None

    def load(self) -> None:
        if self._nlp is not None:
            return
        if spacy is None:
            raise RuntimeError("Библиотека spaCy не установлена. Установите: pip install 'opinion_tagger[nlp]'")
        try:
            self._nlp = spacy.load(self.model_path)
        except Exception as e:
            raise RuntimeError(f"Не удалось загрузить модель spaCy '{self.model_path}': {e}") from e
        logger.info(f"spaCy модель загружена: {self.model_path} | pipe={self._nlp.pipe_names}")

    def unload(self) -> None:
        self._nlp = None

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "name": self.model_name,
            "path": self.model_path,
            "type": "spacy",
            "loaded": self._nlp is not None,
        }

    def _run(self, tokens: Sequence[str]):
        if self._nlp is None:
            self.load()
        doc = Doc(self._nlp.vocab, words=list(tokens))
        for _, proc in self._nlp.pipeline:
            doc = proc(doc)
        return doc


class SpacySequenceLabeler(_SpacyBackedModel, SequenceLabelerInterface):
    """Разметчик целей/аспектов по сущностям (doc.ents) модели spaCy."""

    def __init__(self, model_path: str, adaptive: bool = True) -> None:
        super().__init__(model_path)
        self.adaptive = adaptive
        self._memory = PreviousLabelMemory()

    def label_sequence(self, tokens: Sequence[str]) -> List[SequenceLabel]:
        if not tokens:
            return []
        doc = self._run(tokens)
        labels = [SequenceLabel(ent.start, ent.end, ent.label_) for ent in doc.ents]
        if self.adaptive:
            labels = self._memory.apply(tokens, labels)
        return labels

    def clear_adaptive_data(self) -> None:
        self._memory.clear()


class SpacyDocumentClassifier(_SpacyBackedModel, DocumentClassifierInterface):
    """Классификатор предложения по doc.cats компонента textcat."""

    def __init__(self, model_path: str) -> None:
        super().__init__(model_path)
        self._labels: Optional[List[str]] = None

    @property
    def labels(self) -> List[str]:
        if self._labels is None:
            self.load()
            names = [name for name in self._nlp.pipe_names if name.startswith("textcat")]
            if not names:
                raise RuntimeError(f"В модели '{self.model_path}' нет компонента textcat")
            self._labels = list(self._nlp.get_pipe(names[0]).labels)
        return self._labels

    def classify_prob(self, tokens: Sequence[str]) -> np.ndarray:
        cats = self._run(tokens).cats
        return np.array([cats.get(label, 0.0) for label in self.labels], dtype=float)

    def classify(self, tokens: Sequence[str]) -> str:
        return self.labels[int(np.argmax(self.classify_prob(tokens)))]

    def clear_adaptive_data(self) -> None:
        # textcat не хранит состояние между вызовами
        pass
