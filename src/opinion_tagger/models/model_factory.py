"""
Фабрика для создания классификаторов по конфигурации.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from .base_model import BaseClassifierModel
from .lexicon_model import DictionaryPolarityTagger, GazetteerSequenceLabeler
from .spacy_model import SpacyDocumentClassifier, SpacySequenceLabeler

DICTIONARY_OFF = "off"


class ModelFactory:
    """Создаёт модели на основе конфигурации."""

    @staticmethod
    def resolve_type(model_cfg: Dict[str, Any]) -> str:
        """Тип модели: явный или по пути (каталог -> spacy, файл -> gazetteer)."""
        model_type = (model_cfg.get("type") or "").lower()
        if model_type:
            return model_type
        path = Path(model_cfg.get("path") or "")
        if path.is_dir():
            return "spacy"
        if path.is_file():
            return "gazetteer"
        raise RuntimeError(f"Модель не найдена: '{model_cfg.get('path')}'")

    @staticmethod
    def create_sequence_labeler(model_cfg: Dict[str, Any]) -> Optional[BaseClassifierModel]:
        """Создаёт разметчик последовательностей из словаря настроек.

        Ожидаемый формат:
        {
          "type": "spacy" | "gazetteer",   # можно опустить
          "path": "models/en-ote",
          "adaptive": True,
        }
        """
        if not model_cfg or not model_cfg.get("path"):
            return None
        model_type = ModelFactory.resolve_type(model_cfg)
        adaptive = bool(model_cfg.get("adaptive", True))
        if model_type == "spacy":
            return SpacySequenceLabeler(model_cfg["path"], adaptive=adaptive)
        if model_type == "gazetteer":
            return GazetteerSequenceLabeler(
                model_cfg["path"],
                adaptive=adaptive,
                ignore_case=bool(model_cfg.get("ignore_case", False)),
            )
        return None

    @staticmethod
    def create_document_classifier(model_cfg: Dict[str, Any]) -> Optional[BaseClassifierModel]:
        """Создаёт классификатор предложений (поддерживается только spaCy textcat)."""
        if not model_cfg or not model_cfg.get("path"):
            return None
        if ModelFactory.resolve_type(model_cfg) == "spacy":
            return SpacyDocumentClassifier(model_cfg["path"])
        return None

    @staticmethod
    def create_polarity_dictionary(path: Optional[str]) -> Optional[DictionaryPolarityTagger]:
        if not path or str(path).lower() == DICTIONARY_OFF:
            return None
        return DictionaryPolarityTagger(str(path))

    @staticmethod
    def load_or_fail(model: Optional[BaseClassifierModel], description: str) -> BaseClassifierModel:
        """Загружает модель или выбрасывает ошибку (Fail Fast).

        Args:
            model: Созданная фабрикой модель (None при некорректной конфигурации)
            description: Что это за модель, для сообщения об ошибке

        Returns:
            Загруженная модель

        Raises:
            RuntimeError: если модель не может быть создана или загружена
        """
        if model is None:
            raise RuntimeError(f"Некорректная конфигурация модели ({description}): отсутствует путь или неизвестный тип")
        try:
            model.load()
            return model
        except RuntimeError:
            raise
        except Exception as e:
            raise RuntimeError(f"Не удалось загрузить модель ({description}): {e}") from e
