from pathlib import Path

import pytest

from opinion_tagger.document import parse_document

from fixtures import sample_documents
from utils.mock_classifiers import FakeDocumentClassifier, FakePolarityDictionary, FakeSequenceLabeler


@pytest.fixture(scope="session")
def sample_naf():
    """Наборы NAF-документов для тестирования."""
    return {
        "battery": sample_documents.BATTERY_NAF,
        "docstart": sample_documents.DOCSTART_NAF,
        "three": sample_documents.THREE_SENTENCES_NAF,
        "polarity": sample_documents.POLARITY_NAF,
        "broken": sample_documents.NOT_A_DOCUMENT,
    }


@pytest.fixture
def battery_document(sample_naf):
    return parse_document(sample_naf["battery"])


@pytest.fixture
def events():
    """Общий журнал вызовов классификаторов."""
    return []


@pytest.fixture
def fake_labeler(events):
    return FakeSequenceLabeler(events=events)


@pytest.fixture
def fake_classifier_factory(events):
    def make(label: str, labels=None):
        return FakeDocumentClassifier(label, labels=labels, events=events)
    return make


@pytest.fixture
def fake_dictionary():
    return FakePolarityDictionary({"great": "positive", "love": "positive", "Awful": "negative"})


@pytest.fixture
def gazetteer_file(tmp_path: Path) -> Path:
    path = tmp_path / "targets.tsv"
    path.write_text("# targets\nbattery\tFEATURE\nbattery life\tFEATURE\nscreen\tDISPLAY\n", encoding="utf-8")
    return path


@pytest.fixture
def lexicon_file(tmp_path: Path) -> Path:
    path = tmp_path / "en-polarity.tsv"
    path.write_text("great\tpositive\nlove\tpositive\nawful\tnegative\nthe\tO\n", encoding="utf-8")
    return path


def pytest_configure(config):
    """Регистрируем маркеры для проекта."""
    config.addinivalue_line("markers", "integration: интеграционные тесты (TCP-сервер)")
