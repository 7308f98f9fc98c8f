"""
Тесты чтения и записи NAF.
"""

import pytest
from lxml import etree

from opinion_tagger.components.annotators import PolarityAnnotator, TargetAnnotator
from opinion_tagger.document import (
    DocumentFormatError,
    Opinion,
    OpinionExpression,
    Span,
    parse_document,
    serialize_document,
)
from opinion_tagger.pipeline import annotate_document

from utils.mock_classifiers import FakePolarityDictionary, FakeSequenceLabeler


NAF_WITH_OPINION = """<?xml version="1.0" encoding="UTF-8"?>
<NAF xml:lang="es" version="v3">
  <nafHeader>
    <linguisticProcessors layer="terms">
      <lp name="ixa-pipe-pos" version="1.5" beginTimestamp="2020-01-01T00:00:00+0000"/>
    </linguisticProcessors>
  </nafHeader>
  <text>
    <wf id="w1" sent="1">La</wf>
    <wf id="w2" sent="1">comida</wf>
    <wf id="w3" sent="1">buena</wf>
  </text>
  <terms>
    <term id="t1" lemma="el"><span><target id="w1"/></span></term>
    <term id="t2" lemma="comida"><span><target id="w2"/></span></term>
    <term id="t3" lemma="bueno"><sentiment resource="es-lexicon" polarity="positive"/><span><target id="w3"/></span></term>
  </terms>
  <opinions>
    <opinion id="o1">
      <opinion_target><span><target id="t2"/></span></opinion_target>
      <opinion_expression polarity="positive" sentiment_product_feature="FOOD"><span><target id="t1"/><target id="t2"/><target id="t3"/></span></opinion_expression>
    </opinion>
  </opinions>
</NAF>
"""

NAF_WITHOUT_TERMS = """<NAF xml:lang="en"><text>
<wf id="w1" sent="1">Nice</wf><wf id="w2" sent="1">screen</wf>
</text></NAF>"""


def _xml(text):
    return etree.fromstring(text.encode("utf-8"))


class TestParseDocument:
    """Разбор входного NAF"""

    def test_tokens_and_terms(self, battery_document):
        assert battery_document.lang == "en"
        assert len(battery_document.sentences) == 1
        sentence = battery_document.sentences[0]
        assert sentence.forms == ["The", "battery", "life", "is", "great", "."]
        token = sentence.tokens[3]
        assert (token.id, token.lemma, token.term_id) == ("w4", "be", "t4")

    def test_sentences_in_reading_order(self, sample_naf):
        document = parse_document(sample_naf["docstart"])
        assert [s.number for s in document.sentences] == [1, 2]
        assert not document.sentences[0].is_boundary
        assert document.sentences[1].is_boundary

    def test_custom_boundary_marker(self, sample_naf):
        document = parse_document(sample_naf["three"], boundary_marker="Slow")
        assert [s.is_boundary for s in document.sentences] == [False, True, False]

    def test_existing_layers_are_read(self):
        document = parse_document(NAF_WITH_OPINION)
        assert document.lang == "es"
        opinion = document.opinions[0]
        assert opinion.id == "o1"
        assert opinion.target.token_ids == ("w2",)
        assert opinion.expression.span.token_ids == ("w1", "w2", "w3")
        assert opinion.expression.polarity == "positive"
        assert opinion.expression.feature == "FOOD"
        assert document.sentiments["w3"].resource == "es-lexicon"
        assert document.linguistic_processors[0].name == "ixa-pipe-pos"
        assert document.next_opinion_id() == "o2"

    @pytest.mark.parametrize("data", [
        "",
        "   \n",
        "this is not\na NAF document\n",
        "<NAF><text><wf id='w1'>unclosed</text>",
        "<html><body/></html>",
    ])
    def test_malformed_input(self, data):
        with pytest.raises(DocumentFormatError):
            parse_document(data)

    def test_bytes_input(self, sample_naf):
        document = parse_document(sample_naf["battery"].encode("utf-8"))
        assert len(document.tokens) == 6


class TestSerializeDocument:
    """Запись слоя мнений"""

    def _add_opinion(self, document):
        sentence = document.sentences[0]
        target = Span(1, 3, tuple(sentence.token_ids[1:3]))
        expression = OpinionExpression(
            span=Span(0, len(sentence), tuple(sentence.token_ids)),
            polarity="positive",
            feature="BATTERY#QUALITY",
        )
        document.opinions.append(Opinion(id=document.next_opinion_id(), expression=expression, target=target))

    def test_opinion_references_terms(self, battery_document):
        self._add_opinion(battery_document)
        root = _xml(serialize_document(battery_document))

        opinion = root.find("opinions/opinion")
        assert opinion.get("id") == "o1"
        assert [t.get("id") for t in opinion.iterfind("opinion_target/span/target")] == ["t2", "t3"]
        expression = opinion.find("opinion_expression")
        assert expression.get("polarity") == "positive"
        assert expression.get("sentiment_product_feature") == "BATTERY#QUALITY"
        assert len(expression.findall("span/target")) == 6

    def test_serialization_is_idempotent(self, battery_document):
        self._add_opinion(battery_document)
        lp = battery_document.add_linguistic_processor("opinions", "opinion-tagger-test", "0.1.0")
        lp.set_begin_timestamp()
        lp.set_end_timestamp()

        first = serialize_document(battery_document)
        assert serialize_document(battery_document) == first

        reparsed = parse_document(first)
        assert len(reparsed.opinions) == 1
        assert reparsed.opinions[0].target.token_ids == ("w2", "w3")
        assert serialize_document(reparsed) == first

    def test_header_records_processor(self, battery_document):
        battery_document.add_linguistic_processor("opinions", "opinion-tagger-test", "0.1.0")
        root = _xml(serialize_document(battery_document))
        layer = root.find("nafHeader/linguisticProcessors")
        assert layer.get("layer") == "opinions"
        assert layer.find("lp").get("name") == "opinion-tagger-test"

    def test_boundary_marker_in_comment(self, sample_naf):
        document = parse_document(sample_naf["docstart"])
        sentence = document.sentences[1]
        document.opinions.append(Opinion(
            id="o1",
            expression=OpinionExpression(span=Span(0, 2, tuple(sentence.token_ids))),
        ))
        reparsed = parse_document(serialize_document(document))
        assert reparsed.opinions[0].expression.span.token_ids == ("w4", "w5")

    def test_wf_references_without_terms(self):
        document = parse_document(NAF_WITHOUT_TERMS)
        sentence = document.sentences[0]
        document.opinions.append(Opinion(
            id="o1",
            expression=OpinionExpression(span=Span(1, 2, ("w2",)), feature="DISPLAY"),
            target=Span(1, 2, ("w2",)),
        ))
        root = _xml(serialize_document(document))
        assert root.find("opinions/opinion/opinion_target/span/target").get("id") == "w2"
        assert len(sentence) == 2

    def test_source_tree_is_not_modified(self, battery_document):
        self._add_opinion(battery_document)
        serialize_document(battery_document)
        assert battery_document.source.find("opinions") is None


CHAINED_NAF = """<?xml version="1.0" encoding="UTF-8"?>
<NAF xml:lang="en" version="v3">
  <nafHeader>
    <linguisticProcessors layer="opinions">
      <lp name="opinion-tagger-ote" version="0.1.0" hostname="tagger-1"/>
    </linguisticProcessors>
  </nafHeader>
  <text>
    <wf id="w1" sent="1">Food</wf>
    <wf id="w2" sent="1">was</wf>
    <wf id="w3" sent="1">great</wf>
    <wf id="w4" sent="1">and</wf>
    <wf id="w5" sent="1">cheap</wf>
  </text>
  <terms>
    <term id="t1" lemma="food"><span><target id="w1"/></span></term>
    <term id="t2" lemma="be"><span><target id="w2"/></span></term>
    <term id="t3" lemma="great"><sentiment resource="lex" polarity="positive" strength="2" sentiment_modifier="intensifier"/><span><target id="w3"/></span></term>
    <term id="t4" lemma="and"><span><target id="w4"/></span></term>
    <term id="t5" lemma="cheap"><span><target id="w5"/></span></term>
  </terms>
  <opinions>
    <opinion id="o1">
      <opinion_holder><span><target id="t2"/></span></opinion_holder>
      <opinion_target><span><target id="t1"/></span></opinion_target>
      <opinion_expression polarity="positive" strength="3"><span><target id="t1"/><target id="t3"/></span></opinion_expression>
    </opinion>
    <opinion id="o2">
      <opinion_expression polarity="negative"><span><target id="t99"/></span></opinion_expression>
    </opinion>
  </opinions>
</NAF>
"""


class TestChainedAnnotation:
    """Повторная разметка уже размеченного NAF дописывает, а не переписывает"""

    def _annotated(self, annotator):
        document = parse_document(CHAINED_NAF)
        annotate_document(annotator, document)
        return document, _xml(serialize_document(document))

    def test_input_opinions_are_kept_verbatim(self):
        document, root = self._annotated(TargetAnnotator(FakeSequenceLabeler({"Food": [(0, 1, "FOOD")]})))

        opinions = root.findall("opinions/opinion")
        assert [o.get("id") for o in opinions] == ["o1", "o2", "o3"]

        old = opinions[0]
        assert old.find("opinion_holder") is not None
        expression = old.find("opinion_expression")
        assert expression.get("strength") == "3"
        assert [t.get("id") for t in expression.iterfind("span/target")] == ["t1", "t3"]

        # Мнение, которое не удалось прочитать, тоже остаётся
        assert opinions[1].find("opinion_expression/span/target").get("id") == "t99"

        new = opinions[2]
        assert [t.get("id") for t in new.iterfind("opinion_target/span/target")] == ["t1"]
        assert new.find("opinion_expression").get("sentiment_product_feature") == "FOOD"

    def test_input_sentiments_are_kept(self):
        _, root = self._annotated(TargetAnnotator(FakeSequenceLabeler()))

        sentiment = root.find("terms/term[@id='t3']/sentiment")
        assert sentiment.get("strength") == "2"
        assert sentiment.get("sentiment_modifier") == "intensifier"

    def test_header_processors_are_appended(self):
        _, root = self._annotated(TargetAnnotator(FakeSequenceLabeler()))

        layers = root.findall("nafHeader/linguisticProcessors")
        assert len(layers) == 1
        lps = layers[0].findall("lp")
        assert lps[0].get("hostname") == "tagger-1"
        assert lps[1].get("name") == "opinion-tagger-fake-ote"

    def test_dictionary_pass_only_touches_hit_terms(self):
        dictionary = FakePolarityDictionary({"great": "positive", "cheap": "negative"}, name="lex")
        _, root = self._annotated(PolarityAnnotator(dictionary=dictionary))

        unchanged = root.find("terms/term[@id='t3']/sentiment")
        assert unchanged.get("strength") == "2"
        added = root.find("terms/term[@id='t5']/sentiment")
        assert (added.get("resource"), added.get("polarity")) == ("lex", "negative")
        assert root.find("terms/term[@id='t1']/sentiment") is None

    def test_changed_sentiment_is_replaced(self):
        dictionary = FakePolarityDictionary({"great": "negative"}, name="other-lex")
        _, root = self._annotated(PolarityAnnotator(dictionary=dictionary))

        sentiments = root.findall("terms/term[@id='t3']/sentiment")
        assert len(sentiments) == 1
        assert (sentiments[0].get("resource"), sentiments[0].get("polarity")) == ("other-lex", "negative")
