from .base_model import BaseClassifierModel, PreviousLabelMemory
from .lexicon_model import DictionaryPolarityTagger, GazetteerSequenceLabeler
from .spacy_model import SpacyDocumentClassifier, SpacySequenceLabeler
from .model_factory import ModelFactory

__all__ = [
    "BaseClassifierModel",
    "PreviousLabelMemory",
    "DictionaryPolarityTagger",
    "GazetteerSequenceLabeler",
    "SpacyDocumentClassifier",
    "SpacySequenceLabeler",
    "ModelFactory",
]
