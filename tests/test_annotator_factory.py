import pytest

from opinion_tagger.components.adaptive_state import ClearFeaturesPolicy
from opinion_tagger.components.annotator_factory import AnnotatorFactory, AnnotatorType
from opinion_tagger.components.annotators import PolarityAnnotator, SequenceAspectAnnotator, TargetAnnotator


class TestAnnotatorType:

    @pytest.mark.parametrize("task,classifier,expected", [
        ("ote", "seq", AnnotatorType.TARGET),
        ("aspect", "seq", AnnotatorType.ASPECT_SEQ),
        ("aspect", "doc", AnnotatorType.ASPECT_DOC),
        ("pol", "seq", AnnotatorType.POLARITY),
        ("ABSA", "doc", AnnotatorType.ABSA),
    ])
    def test_from_task(self, task, classifier, expected):
        assert AnnotatorType.from_task(task, classifier) is expected

    def test_unknown_task(self):
        with pytest.raises(ValueError):
            AnnotatorType.from_task("ner")


class TestAnnotatorFactory:
    """Создание аннотаторов с загрузкой моделей"""

    def test_target_annotator_from_gazetteer(self, gazetteer_file):
        annotator = AnnotatorFactory.create(AnnotatorType.TARGET, {
            "target": {"path": str(gazetteer_file)},
            "clear_features": "docstart",
        })
        assert isinstance(annotator, TargetAnnotator)
        assert annotator.clear_features is ClearFeaturesPolicy.ON_BOUNDARY_MARKER
        assert annotator.labeler.get_model_info()["loaded"] is True
        assert annotator.model_name() == "targets"

    def test_sequence_aspect_uses_aspect_model(self, gazetteer_file):
        annotator = AnnotatorFactory.create(AnnotatorType.ASPECT_SEQ, {"aspect": {"path": str(gazetteer_file)}})
        assert isinstance(annotator, SequenceAspectAnnotator)

    def test_polarity_with_dictionary_only(self, lexicon_file):
        annotator = AnnotatorFactory.create(AnnotatorType.POLARITY, {
            "polarity": {"path": None},
            "dictionary": str(lexicon_file),
        })
        assert isinstance(annotator, PolarityAnnotator)
        assert annotator.classifier is None
        assert annotator.model_name() == "en-polarity"

    def test_polarity_without_sources(self):
        with pytest.raises(ValueError):
            AnnotatorFactory.create(AnnotatorType.POLARITY, {"polarity": {}, "dictionary": "off"})

    def test_missing_model_fails_fast(self, tmp_path):
        with pytest.raises(RuntimeError):
            AnnotatorFactory.create(AnnotatorType.TARGET, {"target": {"path": str(tmp_path / "missing")}})
        with pytest.raises(RuntimeError):
            AnnotatorFactory.create(AnnotatorType.ABSA, {"target": {}, "polarity": {}})

    def test_document_aspect_rejects_gazetteer(self, gazetteer_file):
        with pytest.raises(RuntimeError):
            AnnotatorFactory.create(AnnotatorType.ASPECT_DOC, {"aspect": {"path": str(gazetteer_file)}})

    def test_invalid_clear_features(self, gazetteer_file):
        with pytest.raises(ValueError):
            AnnotatorFactory.create(AnnotatorType.TARGET, {
                "target": {"path": str(gazetteer_file)},
                "clear_features": "always",
            })
