"""
Интеграционные тесты TCP-сервера: настоящий сокет на свободном порту.
"""

import socket
import threading

import pytest
from lxml import etree

from opinion_tagger.client import send_document
from opinion_tagger.components.annotators import AbsaAnnotator, TargetAnnotator
from opinion_tagger.protocol import END_OF_DOCUMENT
from opinion_tagger.server import OpinionTaggerServer

from utils.mock_classifiers import FakeDocumentClassifier, FakeSequenceLabeler

pytestmark = pytest.mark.integration

HOST = "127.0.0.1"


@pytest.fixture
def running_server():
    """Запускает сервер в фоне и останавливает после теста."""
    servers = []

    def start(annotator, **kwargs):
        server = OpinionTaggerServer((HOST, 0), annotator, **kwargs)
        thread = threading.Thread(target=server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)
        thread.start()
        servers.append((server, thread))
        return server.server_address[1]

    yield start

    for server, thread in servers:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _raw_request(port, payload: bytes) -> str:
    """Отправляет байты без закрытия записи: сервер должен ответить сам."""
    with socket.create_connection((HOST, port), timeout=5) as sock:
        sock.sendall(payload)
        chunks = []
        while True:
            data = sock.recv(4096)
            if not data:
                break
            chunks.append(data)
    return b"".join(chunks).decode("utf-8")


@pytest.fixture
def absa_annotator():
    labeler = FakeSequenceLabeler({"The": [(1, 3, "BATTERY#QUALITY")]})
    return AbsaAnnotator(labeler, FakeDocumentClassifier("positive"))


def test_annotates_document(running_server, absa_annotator, sample_naf):
    port = running_server(absa_annotator)

    response = send_document(sample_naf["battery"], HOST, port, timeout=5)

    root = etree.fromstring(response.encode("utf-8"))
    opinion = root.find("opinions/opinion")
    assert [t.get("id") for t in opinion.iterfind("opinion_target/span/target")] == ["t2", "t3"]
    assert opinion.find("opinion_expression").get("polarity") == "positive"
    lp = root.find("nafHeader/linguisticProcessors[@layer='opinions']/lp")
    assert lp.get("name") == "opinion-tagger-fake-ote+fake-doc"


def test_malformed_document_then_next_request(running_server, absa_annotator, sample_naf):
    port = running_server(absa_annotator)

    payload = f"not xml\nstill not xml\nnope\n{END_OF_DOCUMENT}\n".encode("utf-8")
    response = _raw_request(port, payload)
    assert "Badly formatted NAF document" in response

    # Сервер продолжает принимать соединения
    response = send_document(sample_naf["battery"], HOST, port, timeout=5)
    assert "<opinions>" in response


def test_legacy_end_tag(running_server, absa_annotator, sample_naf):
    port = running_server(absa_annotator)

    response = _raw_request(port, sample_naf["battery"].encode("utf-8"))

    assert "<opinions>" in response


def test_language_mismatch(running_server, absa_annotator, sample_naf):
    port = running_server(absa_annotator, language="es")

    response = send_document(sample_naf["battery"], HOST, port, timeout=5)

    assert response.startswith("\n-> ERROR:")
    assert "<NAF" not in response


def test_classifier_failure_resets_state(running_server, sample_naf):
    labeler = FakeSequenceLabeler({"Good": [(1, 2, "FOOD")]}, fail_on="-DOCSTART-")
    port = running_server(TargetAnnotator(labeler))

    response = send_document(sample_naf["docstart"], HOST, port, timeout=5)
    assert "Annotation failed" in response
    assert labeler.resets == 1

    response = send_document(sample_naf["battery"], HOST, port, timeout=5)
    assert "<NAF" in response
    assert labeler.resets == 2


def test_sequential_requests_do_not_share_opinions(running_server, absa_annotator, sample_naf):
    port = running_server(absa_annotator)

    first = send_document(sample_naf["battery"], HOST, port, timeout=5)
    second = send_document(sample_naf["battery"], HOST, port, timeout=5)

    for response in (first, second):
        root = etree.fromstring(response.encode("utf-8"))
        assert len(root.findall("opinions/opinion")) == 1
