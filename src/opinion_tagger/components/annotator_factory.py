"""
Фабрика стратегий разметки: выбор варианта по задаче при настройке запроса.
"""

from enum import Enum
import logging
from typing import Any, Dict, Optional

from ..interfaces.annotation import Annotator
from ..models.model_factory import ModelFactory
from .annotators import (
    AbsaAnnotator,
    DocumentAspectAnnotator,
    PolarityAnnotator,
    SequenceAspectAnnotator,
    TargetAnnotator,
)

logger = logging.getLogger(__name__)


class AnnotatorType(Enum):
    TARGET = "ote"
    ASPECT_SEQ = "aspect-seq"
    ASPECT_DOC = "aspect-doc"
    POLARITY = "pol"
    ABSA = "absa"

    @classmethod
    def from_task(cls, task: str, classifier: str = "seq") -> "AnnotatorType":
        """Задача CLI (ote/aspect/pol/absa) + вариант классификатора аспектов."""
        task = (task or "").lower()
        if task == "aspect":
            return cls.ASPECT_DOC if (classifier or "seq").lower() == "doc" else cls.ASPECT_SEQ
        try:
            return cls(task)
        except ValueError:
            raise ValueError(f"Неизвестная задача: {task!r}") from None


class AnnotatorFactory:
    """Создаёт аннотатор и загружает его модели (Fail Fast)."""

    @staticmethod
    def create(annotator_type: AnnotatorType, settings: Dict[str, Any]) -> Annotator:
        """
        Args:
            annotator_type: Вариант стратегии
            settings: {
                "target": {...}, "aspect": {...}, "polarity": {...},  # конфиги моделей
                "dictionary": "path" | "off",
                "clear_features": "no" | "yes" | "docstart",
            }

        Raises:
            RuntimeError: если модель не найдена или не загружается
            ValueError: если комбинация параметров некорректна
        """
        clear_features = settings.get("clear_features", "no")
        logger.info(f"Создание аннотатора {annotator_type.value} (clearFeatures={clear_features})")

        if annotator_type in (AnnotatorType.TARGET, AnnotatorType.ASPECT_SEQ):
            section = "target" if annotator_type is AnnotatorType.TARGET else "aspect"
            labeler = ModelFactory.load_or_fail(
                ModelFactory.create_sequence_labeler(settings.get(section) or {}), section)
            cls = TargetAnnotator if annotator_type is AnnotatorType.TARGET else SequenceAspectAnnotator
            return cls(labeler, clear_features)

        if annotator_type is AnnotatorType.ASPECT_DOC:
            classifier = ModelFactory.load_or_fail(
                ModelFactory.create_document_classifier(settings.get("aspect") or {}), "aspect")
            return DocumentAspectAnnotator(classifier, clear_features)

        if annotator_type is AnnotatorType.POLARITY:
            polarity_cfg = settings.get("polarity") or {}
            classifier: Optional[Any] = None
            if polarity_cfg.get("path"):
                classifier = ModelFactory.load_or_fail(
                    ModelFactory.create_document_classifier(polarity_cfg), "polarity")
            dictionary = ModelFactory.create_polarity_dictionary(settings.get("dictionary"))
            if dictionary is not None:
                ModelFactory.load_or_fail(dictionary, "dictionary")
            return PolarityAnnotator(classifier, dictionary, clear_features)

        if annotator_type is AnnotatorType.ABSA:
            labeler = ModelFactory.load_or_fail(
                ModelFactory.create_sequence_labeler(settings.get("target") or {}), "target")
            polarity = ModelFactory.load_or_fail(
                ModelFactory.create_document_classifier(settings.get("polarity") or {}), "polarity")
            return AbsaAnnotator(labeler, polarity, clear_features)

        raise ValueError(f"Неподдерживаемый тип аннотатора: {annotator_type}")
