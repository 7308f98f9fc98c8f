"""
Модели на основе словарей: разметчик по газеттиру и словарь полярности.

Формат файлов: одна запись на строку, поля разделены табуляцией,
строки с '#' в начале и пустые строки пропускаются.
- газеттир:        "battery life<TAB>FEATURE"
- словарь полярности: "great<TAB>positive"
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from ..interfaces.annotation import (
    PolarityDictionaryInterface,
    SequenceLabel,
    SequenceLabelerInterface,
)
from .base_model import BaseClassifierModel, PreviousLabelMemory

logger = logging.getLogger(__name__)


def _read_tsv(path: str) -> Iterator[Tuple[int, str, str]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.rstrip("\n")
                if not line.strip() or line.lstrip().startswith("#"):
                    continue
                parts = line.split("\t")
                if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
                    raise RuntimeError(f"{path}:{lineno}: ожидается 'запись<TAB>метка'")
                yield lineno, parts[0].strip(), parts[1].strip()
    except OSError as e:
        raise RuntimeError(f"Не удалось прочитать словарь '{path}': {e}") from e


class GazetteerSequenceLabeler(BaseClassifierModel, SequenceLabelerInterface):
    """Разметчик по списку фраз: жадное совпадение наибольшей длины слева направо."""

    def __init__(self, model_path: str, adaptive: bool = True, ignore_case: bool = False) -> None:
        super().__init__(model_path)
        self.adaptive = adaptive
        self.ignore_case = ignore_case
        self._lexicon: Optional[Dict[Tuple[str, ...], str]] = None
        self._max_len = 0
        self._memory = PreviousLabelMemory()

    def load(self) -> None:
        if self._lexicon is not None:
            return
        lexicon: Dict[Tuple[str, ...], str] = {}
        for _, phrase, label_type in _read_tsv(self.model_path):
            key = tuple(self._norm(w) for w in phrase.split())
            lexicon[key] = label_type
        self._lexicon = lexicon
        self._max_len = max((len(k) for k in lexicon), default=0)
        logger.info(f"Газеттир загружен: {self.model_path} ({len(lexicon)} фраз)")

    def unload(self) -> None:
        self._lexicon = None
        self._max_len = 0

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "name": self.model_name,
            "path": self.model_path,
            "type": "gazetteer",
            "loaded": self._lexicon is not None,
            "entries": len(self._lexicon or {}),
        }

    def _norm(self, word: str) -> str:
        return word.lower() if self.ignore_case else word

    def label_sequence(self, tokens: Sequence[str]) -> List[SequenceLabel]:
        if self._lexicon is None:
            self.load()
        words = [self._norm(t) for t in tokens]
        labels: List[SequenceLabel] = []
        i = 0
        while i < len(words):
            for n in range(min(self._max_len, len(words) - i), 0, -1):
                label_type = self._lexicon.get(tuple(words[i:i + n]))
                if label_type is not None:
                    labels.append(SequenceLabel(i, i + n, label_type))
                    i += n
                    break
            else:
                i += 1
        if self.adaptive:
            labels = self._memory.apply(tokens, labels)
        return labels

    def clear_adaptive_data(self) -> None:
        self._memory.clear()


class DictionaryPolarityTagger(BaseClassifierModel, PolarityDictionaryInterface):
    """Словарь полярности: словоформа или лемма -> метка."""

    # Метка "вне словаря" в исходных ресурсах
    OUTSIDE = "O"

    def __init__(self, model_path: str) -> None:
        super().__init__(model_path)
        self._entries: Optional[Dict[str, str]] = None

    @property
    def name(self) -> str:
        return self.model_name

    def load(self) -> None:
        if self._entries is not None:
            return
        self._entries = {
            form: polarity
            for _, form, polarity in _read_tsv(self.model_path)
            if polarity != self.OUTSIDE
        }
        logger.info(f"Словарь полярности загружен: {self.model_path} ({len(self._entries)} записей)")

    def unload(self) -> None:
        self._entries = None

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.model_path,
            "type": "dictionary",
            "loaded": self._entries is not None,
        }

    def lookup(self, form: str) -> Optional[str]:
        if not form:
            return None
        if self._entries is None:
            self.load()
        return self._entries.get(form)
