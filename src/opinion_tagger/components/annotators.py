"""
Стратегии разметки мнений.

Все стратегии проходят документ по предложениям одинаково:
1. токены и их идентификаторы предложения;
2. сброс памяти классификаторов до предложения (по политике);
3. извлечение, специфичное для стратегии;
4. сброс после предложения (по политике);
5. безусловный сброс после документа.

Результаты копятся и попадают в документ только после успешного прохода:
ошибка классификатора прерывает документ целиком, частичной разметки нет.
"""

from abc import abstractmethod
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..document import Document, OpinionExpression, Sentence, Sentiment, Span, serialize_document
from ..interfaces.annotation import (
    AdaptiveClassifierInterface,
    Annotator,
    DocumentClassifierInterface,
    PolarityDictionaryInterface,
    SequenceLabelerInterface,
)
from .adaptive_state import AdaptiveStateController, ClearFeaturesPolicy
from .opinion_assembler import attach
from .span_mapper import to_span, whole_sentence_span

logger = logging.getLogger(__name__)

PendingOpinion = Tuple[Optional[Span], OpinionExpression]


def _name_of(model) -> str:
    return getattr(model, "model_name", None) or type(model).__name__


class BaseAnnotator(Annotator):
    """Общий цикл по предложениям; подклассы реализуют annotate_sentence."""

    def __init__(self, clear_features=ClearFeaturesPolicy.NEVER):
        self.state = AdaptiveStateController(clear_features, self.classifiers())

    @property
    def clear_features(self) -> ClearFeaturesPolicy:
        return self.state.policy

    @abstractmethod
    def classifiers(self) -> List[AdaptiveClassifierInterface]:
        """Классификаторы, чьей памятью управляет аннотатор."""
        pass

    @abstractmethod
    def annotate_sentence(self, sentence: Sentence, tokens: List[str],
                          token_ids: List[str]) -> List[PendingOpinion]:
        pass

    def annotate_tokens(self, document: Document) -> Dict[str, Sentiment]:
        """Разметка отдельных токенов за один проход по документу (по умолчанию нет)."""
        return {}

    def annotate(self, document: Document) -> None:
        pending: List[PendingOpinion] = []
        try:
            sentiments = self.annotate_tokens(document)
            for sentence in document.sentences:
                tokens = sentence.forms
                token_ids = sentence.token_ids
                self.state.before_sentence(sentence)
                pending.extend(self.annotate_sentence(sentence, tokens, token_ids))
                self.state.after_sentence(sentence)
        finally:
            self.state.end_of_document()

        document.sentiments.update(sentiments)
        for target, expression in pending:
            attach(document, target, expression)
        logger.debug(
            f"{type(self).__name__}: предложений={len(document.sentences)}, "
            f"мнений добавлено={len(pending)}, тональностей={len(sentiments)}"
        )

    def serialize(self, document: Document, output_format: str = "naf") -> str:
        output_format = (output_format or "naf").lower()
        if output_format == "tabulated":
            # Табличного вывода пока нет: параметр принимается ради совместимости
            logger.debug("Формат tabulated сериализуется как NAF")
        elif output_format != "naf":
            raise ValueError(f"Неизвестный формат вывода: {output_format}")
        return serialize_document(document)

    def model_name(self) -> str:
        return "+".join(_name_of(c) for c in self.classifiers()) or type(self).__name__


class TargetAnnotator(BaseAnnotator):
    """Извлечение целей мнений (OTE): цель = выражение = найденный отрезок."""

    with_target = True

    def __init__(self, labeler: SequenceLabelerInterface, clear_features=ClearFeaturesPolicy.NEVER):
        self.labeler = labeler
        super().__init__(clear_features)

    def classifiers(self) -> List[AdaptiveClassifierInterface]:
        return [self.labeler]

    def annotate_sentence(self, sentence, tokens, token_ids):
        pending = []
        for label in self.labeler.label_sequence(tokens):
            span = to_span(sentence, token_ids, label.start, label.end)
            pending.append((
                span if self.with_target else None,
                OpinionExpression(span=span, feature=label.type),
            ))
        return pending


class SequenceAspectAnnotator(TargetAnnotator):
    """Аспекты разметчиком последовательностей: как OTE, но без цели."""

    with_target = False


class DocumentAspectAnnotator(BaseAnnotator):
    """Аспект предложения целиком: одно мнение на предложение."""

    def __init__(self, classifier: DocumentClassifierInterface, clear_features=ClearFeaturesPolicy.NEVER):
        self.classifier = classifier
        super().__init__(clear_features)

    def classifiers(self):
        return [self.classifier]

    def annotate_sentence(self, sentence, tokens, token_ids):
        aspect = self.classifier.classify(tokens)
        if logger.isEnabledFor(logging.DEBUG):
            probs = self.classifier.classify_prob(tokens)
            labels = self.classifier.labels
            if aspect in labels:
                logger.debug(f"Предложение {sentence.number}: {aspect} (p={probs[labels.index(aspect)]:.3f})")
        return [(None, OpinionExpression(span=whole_sentence_span(sentence), feature=aspect))]


class PolarityAnnotator(BaseAnnotator):
    """
    Полярность: словарь по всем токенам документа и/или классификатор предложений.

    Словарный проход выполняется один раз на документ: словоформа, при
    промахе лемма. Тональность пишется на токен, а не в мнение, и хранится
    по идентификатору токена, поэтому повторный проход не создаёт дубликатов.
    """

    def __init__(self, classifier: Optional[DocumentClassifierInterface] = None,
                 dictionary: Optional[PolarityDictionaryInterface] = None,
                 clear_features=ClearFeaturesPolicy.NEVER):
        if classifier is None and dictionary is None:
            raise ValueError("Для разметки полярности нужна модель или словарь")
        self.classifier = classifier
        self.dictionary = dictionary
        super().__init__(clear_features)

    def classifiers(self):
        return [self.classifier] if self.classifier is not None else []

    def model_name(self) -> str:
        names = [_name_of(self.classifier)] if self.classifier is not None else []
        if self.dictionary is not None:
            names.append(self.dictionary.name)
        return "+".join(names)

    def annotate_tokens(self, document):
        if self.dictionary is None:
            return {}
        sentiments = {}
        for token in document.tokens:
            polarity = self.dictionary.lookup(token.form)
            if polarity is None and token.lemma:
                polarity = self.dictionary.lookup(token.lemma)
            if polarity is not None:
                sentiments[token.id] = Sentiment(polarity=polarity, resource=self.dictionary.name)
        return sentiments

    def annotate_sentence(self, sentence, tokens, token_ids):
        if self.classifier is None:
            return []
        polarity = self.classifier.classify(tokens)
        return [(None, OpinionExpression(span=whole_sentence_span(sentence), polarity=polarity))]


class AbsaAnnotator(BaseAnnotator):
    """
    Цели с аспектами плюс полярность для каждой цели.

    Классификатор полярности работает по всему предложению и вызывается
    по разу на цель, поэтому все цели предложения получают одну полярность.
    """

    def __init__(self, labeler: SequenceLabelerInterface, polarity_classifier: DocumentClassifierInterface,
                 clear_features=ClearFeaturesPolicy.NEVER):
        self.labeler = labeler
        self.polarity_classifier = polarity_classifier
        super().__init__(clear_features)

    def classifiers(self):
        return [self.labeler, self.polarity_classifier]

    def annotate_sentence(self, sentence, tokens: Sequence[str], token_ids):
        pending = []
        for label in self.labeler.label_sequence(tokens):
            target = to_span(sentence, token_ids, label.start, label.end)
            polarity = self.polarity_classifier.classify(tokens)
            pending.append((target, OpinionExpression(
                span=whole_sentence_span(sentence),
                polarity=polarity,
                feature=label.type,
            )))
        return pending
