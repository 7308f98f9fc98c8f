"""
Чтение и запись документов в формате NAF на основе lxml.

Поддерживается ровно то, что нужно для разметки мнений: слой text (wf),
слой terms (леммы и словарная тональность), слой opinions и заголовок
linguisticProcessors. Входное содержимое переносится в вывод без изменений,
запись только дописывает новое.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Union

from lxml import etree

from .model import (
    BOUNDARY_MARKER,
    Document,
    LinguisticProcessor,
    Opinion,
    OpinionExpression,
    Sentence,
    Sentiment,
    Span,
    Token,
)

logger = logging.getLogger(__name__)

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


class DocumentFormatError(ValueError):
    """Входные данные не являются корректным NAF-документом."""


def parse_document(data: Union[bytes, str], boundary_marker: str = BOUNDARY_MARKER) -> Document:
    """
    Разбирает NAF-документ.

    Args:
        data: XML в виде байтов (UTF-8) или строки
        boundary_marker: Литерал маркера границы документа

    Returns:
        Document

    Raises:
        DocumentFormatError: если XML некорректен или это не NAF
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not data or not data.strip():
        raise DocumentFormatError("Пустой документ")
    parser = etree.XMLParser(remove_blank_text=True)
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise DocumentFormatError(f"Некорректный XML: {e}") from e
    if root.tag not in ("NAF", "KAF"):
        raise DocumentFormatError(f"Ожидался корневой элемент NAF, получен <{root.tag}>")

    terms_by_wf = _read_terms(root)
    sentences = _read_sentences(root, terms_by_wf, boundary_marker)
    document = Document(lang=root.get(XML_LANG), sentences=sentences, source=root)
    document.sentiments.update(_read_sentiments(root, terms_by_wf))
    document.opinions.extend(_read_opinions(root, document))
    document.linguistic_processors.extend(_read_linguistic_processors(root))

    document.source_sentiments = dict(document.sentiments)
    document.source_opinion_ids = {o.id for o in document.opinions} | {
        node.get("id") for node in root.iterfind("opinions/opinion") if node.get("id")
    }
    document.source_processor_count = len(document.linguistic_processors)
    logger.debug(
        f"NAF разобран: lang={document.lang}, предложений={len(sentences)}, "
        f"мнений={len(document.opinions)}"
    )
    return document


def _read_terms(root) -> Dict[str, etree._Element]:
    """wf id -> элемент term (берётся первый term, покрывающий wf)."""
    terms_by_wf: Dict[str, etree._Element] = {}
    for term in root.iterfind("terms/term"):
        for target in term.iterfind("span/target"):
            terms_by_wf.setdefault(target.get("id"), term)
    return terms_by_wf


def _read_sentences(root, terms_by_wf, boundary_marker: str) -> List[Sentence]:
    grouped: "OrderedDict[str, List[Token]]" = OrderedDict()
    for wf in root.iterfind("text/wf"):
        wf_id = wf.get("id")
        if wf_id is None:
            raise DocumentFormatError("Элемент wf без атрибута id")
        sent = wf.get("sent", "1")
        term = terms_by_wf.get(wf_id)
        token = Token(
            id=wf_id,
            form=wf.text or "",
            sent=int(sent) if sent.isdigit() else 0,
            lemma=term.get("lemma") if term is not None else None,
            term_id=term.get("id") if term is not None else None,
        )
        grouped.setdefault(sent, []).append(token)
    return [
        Sentence(number=i, tokens=tokens, boundary_marker=boundary_marker)
        for i, tokens in enumerate(grouped.values(), start=1)
    ]


def _read_sentiments(root, terms_by_wf) -> Dict[str, Sentiment]:
    wf_by_term = {term.get("id"): wf_id for wf_id, term in terms_by_wf.items()}
    sentiments: Dict[str, Sentiment] = {}
    for term in root.iterfind("terms/term"):
        node = term.find("sentiment")
        wf_id = wf_by_term.get(term.get("id"))
        if node is not None and node.get("polarity") and wf_id:
            sentiments[wf_id] = Sentiment(polarity=node.get("polarity"), resource=node.get("resource", ""))
    return sentiments


def _span_from_targets(node, document: Document) -> Optional[Span]:
    """Восстанавливает Span по ссылкам на term/wf внутри одного предложения.

    Разрывный отрезок читается как охватывающий; в выводе остаются исходные ссылки.
    """
    if node is None:
        return None
    refs = [t.get("id") for t in node.iterfind("span/target")]
    for sentence in document.sentences:
        ids = sentence.token_ids
        by_ref = {}
        for i, token in enumerate(sentence.tokens):
            by_ref[token.id] = i
            if token.term_id:
                by_ref.setdefault(token.term_id, i)
        positions = [by_ref[r] for r in refs if r in by_ref]
        if positions and len(positions) == len(refs):
            start, end = min(positions), max(positions) + 1
            return Span(start=start, end=end, token_ids=tuple(ids[start:end]))
    return None


def _read_opinions(root, document: Document) -> List[Opinion]:
    opinions = []
    for node in root.iterfind("opinions/opinion"):
        expr_node = node.find("opinion_expression")
        expr_span = _span_from_targets(expr_node, document)
        if expr_span is None:
            logger.warning(f"Мнение {node.get('id')} не сводится к одному предложению и переносится в вывод без разбора")
            continue
        opinions.append(Opinion(
            id=node.get("id") or f"o{len(opinions) + 1}",
            target=_span_from_targets(node.find("opinion_target"), document),
            expression=OpinionExpression(
                span=expr_span,
                polarity=expr_node.get("polarity"),
                feature=expr_node.get("sentiment_product_feature"),
            ),
        ))
    return opinions


def _read_linguistic_processors(root) -> List[LinguisticProcessor]:
    processors = []
    for layer in root.iterfind("nafHeader/linguisticProcessors"):
        for lp in layer.iterfind("lp"):
            processors.append(LinguisticProcessor(
                layer=layer.get("layer", ""),
                name=lp.get("name", ""),
                version=lp.get("version", ""),
                begin_timestamp=lp.get("beginTimestamp"),
                end_timestamp=lp.get("endTimestamp"),
            ))
    return processors


def serialize_document(document: Document) -> str:
    """
    Сериализует документ в NAF.

    Всё, что было во входном документе, переносится без изменений: в дерево
    дописываются только новые мнения, новые записи linguisticProcessors и
    тональности терминов, найденные словарным проходом. Исходное дерево не
    меняется, поэтому повторная сериализация даёт тот же результат.
    """
    root = document.source
    if root is None:
        root = etree.Element("NAF", version="v3")
        text = etree.SubElement(root, "text")
        for token in document.tokens:
            wf = etree.SubElement(text, "wf", id=token.id, sent=str(token.sent))
            wf.text = token.form
    else:
        # Работаем с копией, чтобы не портить исходное дерево
        root = etree.fromstring(etree.tostring(root))
    if document.lang:
        root.set(XML_LANG, document.lang)

    _write_header(root, document.new_linguistic_processors)
    term_ref = {t.id: t.term_id or t.id for t in document.tokens}
    _write_sentiments(root, document.new_sentiments)
    _write_opinions(root, document.new_opinions, document, term_ref)

    return etree.tostring(root, encoding="UTF-8", xml_declaration=True, pretty_print=True).decode("utf-8")


def _write_header(root, processors: List[LinguisticProcessor]) -> None:
    if not processors:
        return
    header = root.find("nafHeader")
    if header is None:
        header = etree.Element("nafHeader")
        root.insert(0, header)
    layers: Dict[str, etree._Element] = {}
    for layer in header.iterfind("linguisticProcessors"):
        layers.setdefault(layer.get("layer", ""), layer)
    for lp in processors:
        layer = layers.get(lp.layer)
        if layer is None:
            layer = etree.SubElement(header, "linguisticProcessors", layer=lp.layer)
            layers[lp.layer] = layer
        attrs = {"name": lp.name, "version": lp.version}
        if lp.begin_timestamp:
            attrs["beginTimestamp"] = lp.begin_timestamp
        if lp.end_timestamp:
            attrs["endTimestamp"] = lp.end_timestamp
        etree.SubElement(layer, "lp", **attrs)


def _write_sentiments(root, sentiments: Dict[str, Sentiment]) -> None:
    """Добавляет или заменяет sentiment только у терминов с новой тональностью."""
    if not sentiments:
        return
    terms = root.find("terms")
    if terms is None:
        logger.warning("В документе нет слоя terms, словарная тональность не будет записана")
        return
    for term in terms.iterfind("term"):
        wf_ids = [t.get("id") for t in term.iterfind("span/target")]
        sentiment = next((sentiments[w] for w in wf_ids if w in sentiments), None)
        if sentiment is None:
            continue
        old = term.find("sentiment")
        if old is not None:
            term.remove(old)
        node = etree.Element("sentiment", resource=sentiment.resource, polarity=sentiment.polarity)
        # sentiment идёт перед span
        term.insert(0, node)


def _comment_text(text: str) -> str:
    # XML-комментарий не может содержать "--" и заканчиваться на "-"
    while "--" in text:
        text = text.replace("--", "- -")
    return text + " " if text.endswith("-") else text


def _write_span(parent, span: Span, document: Document, term_ref: Dict[str, str]) -> None:
    forms = {t.id: t.form for t in document.tokens}
    parent.append(etree.Comment(_comment_text(" ".join(forms.get(i, "") for i in span.token_ids))))
    span_node = etree.SubElement(parent, "span")
    seen = set()
    for token_id in span.token_ids:
        ref = term_ref.get(token_id, token_id)
        if ref not in seen:
            seen.add(ref)
            etree.SubElement(span_node, "target", id=ref)


def _write_opinions(root, opinions: List[Opinion], document: Document, term_ref: Dict[str, str]) -> None:
    """Дописывает новые мнения в конец слоя opinions."""
    if not opinions:
        return
    layer = root.find("opinions")
    if layer is None:
        layer = etree.SubElement(root, "opinions")
    for opinion in opinions:
        node = etree.SubElement(layer, "opinion", id=opinion.id)
        if opinion.target is not None:
            _write_span(etree.SubElement(node, "opinion_target"), opinion.target, document, term_ref)
        expr = opinion.expression
        attrs = {}
        if expr.polarity is not None:
            attrs["polarity"] = expr.polarity
        if expr.feature is not None:
            attrs["sentiment_product_feature"] = expr.feature
        _write_span(etree.SubElement(node, "opinion_expression", **attrs), expr.span, document, term_ref)
