"""
Политика сброса адаптивной памяти классификаторов.

Аннотатор живёт долго (на сервере между запросами), поэтому память
классификаторов сбрасывается явно: по политике до/после предложения и
безусловно один раз в конце прохода по документу.
"""

from enum import Enum
import logging
from typing import Iterable, List

from ..document import Sentence
from ..interfaces.annotation import AdaptiveClassifierInterface

logger = logging.getLogger(__name__)


class ClearFeaturesPolicy(Enum):
    """Когда сбрасывать адаптивную память."""
    NEVER = "no"
    EVERY_SENTENCE = "yes"
    ON_BOUNDARY_MARKER = "docstart"

    @classmethod
    def parse(cls, value) -> "ClearFeaturesPolicy":
        """Принимает значение политики или его строковую форму (no/yes/docstart)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(f"Неизвестная политика clearFeatures: {value!r} (допустимо: {choices})") from None


def should_reset_before(sentence: Sentence, policy: ClearFeaturesPolicy) -> bool:
    return policy is ClearFeaturesPolicy.EVERY_SENTENCE or (
        policy is ClearFeaturesPolicy.ON_BOUNDARY_MARKER and sentence.is_boundary
    )


def should_reset_after(sentence: Sentence, policy: ClearFeaturesPolicy) -> bool:
    return policy is ClearFeaturesPolicy.EVERY_SENTENCE


class AdaptiveStateController:
    """Применяет политику к набору классификаторов одного аннотатора."""

    def __init__(self, policy, classifiers: Iterable[AdaptiveClassifierInterface]):
        self.policy = ClearFeaturesPolicy.parse(policy)
        self.classifiers: List[AdaptiveClassifierInterface] = [c for c in classifiers if c is not None]

    def reset(self) -> None:
        for classifier in self.classifiers:
            classifier.clear_adaptive_data()

    def before_sentence(self, sentence: Sentence) -> None:
        if should_reset_before(sentence, self.policy):
            logger.debug(f"Сброс адаптивной памяти перед предложением {sentence.number}")
            self.reset()

    def after_sentence(self, sentence: Sentence) -> None:
        if should_reset_after(sentence, self.policy):
            self.reset()

    def end_of_document(self) -> None:
        self.reset()
