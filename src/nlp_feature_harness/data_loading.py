"""
JSONL corpus loader.

Each line is one record tagged by ``kind``::

    {"kind": "document", "name": "d1", "sentences": [["Apple", "sued", "Acme"]],
     "dependencies": [["nsubj(sued-2, Apple-1)", "dobj(sued-2, Acme-3)", "root(ROOT-0, sued-2)"]]}
    {"kind": "gazetteer", "name": "companies", "entries": ["Apple", "Acme Corp"]}
    {"kind": "datum", "id": "x1", "label": "sues", "document": "d1",
     "spans": {"source": [{"sentence": 0, "start": 0, "end": 1}]}, "strings": {"name": "Apple"}}

Documents must precede the datums that refer to them. Every span key and
string key seen on a datum becomes a token-span or string extractor of the
same name on the returned ``DatumTools``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Literal, Optional, Tuple, Union

import orjson
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .domain.datum import Datum, DependencyParse, Document, TokenSpan, TypedDependency
from .domain.gazetteer import Gazetteer
from .domain.tools import DatumTools
from .errors import DataFormatError
from .features.dataset import FeaturizedDataSet


class StrictBase(BaseModel):
    """Base class for records that forbid extra fields."""

    model_config = ConfigDict(extra="forbid")


class SpanRecord(StrictBase):
    sentence: int
    start: int = Field(ge=0)
    end: int = Field(ge=0)  # exclusive

    @model_validator(mode="after")
    def validate_end_after_start(self):
        if self.end < self.start:
            raise ValueError("end must be >= start")
        return self


class DocumentRecord(StrictBase):
    kind: Literal["document"] = "document"
    name: str
    sentences: List[List[str]]
    dependencies: List[List[str]] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_dependency_sentences(self):
        if self.dependencies and len(self.dependencies) != len(self.sentences):
            raise ValueError(
                f"dependencies has {len(self.dependencies)} sentences, sentences has {len(self.sentences)}"
            )
        return self


class DatumRecord(StrictBase):
    kind: Literal["datum"] = "datum"
    id: str
    label: Optional[str] = None
    document: Optional[str] = None
    spans: Dict[str, List[SpanRecord]] = Field(default_factory=dict)
    strings: Dict[str, str] = Field(default_factory=dict)


class GazetteerRecord(StrictBase):
    kind: Literal["gazetteer"] = "gazetteer"
    name: str
    entries: List[str]


RECORD_TYPES = {
    "document": DocumentRecord,
    "datum": DatumRecord,
    "gazetteer": GazetteerRecord,
}

Record = Union[DocumentRecord, DatumRecord, GazetteerRecord]


def _iter_jsonl(path: Path) -> Iterator[Tuple[int, dict]]:
    """Iterate over a JSONL file, yielding (line_num, data) tuples."""
    with path.open("rb") as f:
        for i, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                yield i, orjson.loads(line)
            except orjson.JSONDecodeError as e:
                raise DataFormatError(f"invalid JSON: {e}", line=i, source=str(path))


def parse_record(data: dict, line: Optional[int] = None, source: Optional[str] = None) -> Record:
    if not isinstance(data, dict):
        raise DataFormatError("expected a JSON object", line=line, source=source)
    kind = data.get("kind")
    model = RECORD_TYPES.get(kind)
    if model is None:
        raise DataFormatError(
            f"unknown record kind {kind!r} (expected one of {', '.join(RECORD_TYPES)})",
            line=line,
            source=source,
        )
    try:
        return model(**data)
    except ValidationError as e:
        raise DataFormatError(f"invalid {kind} record: {e}", line=line, source=source)


def build_document(record: DocumentRecord) -> Document:
    """Document with one dependency parse per sentence; unparseable arcs are errors."""
    parses = []
    for sentence_index, tokens in enumerate(record.sentences):
        dependencies = []
        arcs = record.dependencies[sentence_index] if record.dependencies else []
        for text in arcs:
            dependency = TypedDependency.from_string(text, sentence_index)
            if dependency is None:
                raise ValueError(f"cannot parse dependency {text!r} in sentence {sentence_index}")
            dependencies.append(dependency)
        parses.append(DependencyParse(sentence_index, len(tokens), dependencies))
    return Document(name=record.name, sentences=record.sentences, dependency_parses=parses)


def build_datum(record: DatumRecord, documents: Dict[str, Document]) -> Datum:
    document = None
    if record.document is not None:
        if record.document not in documents:
            raise ValueError(f"datum {record.id} refers to unknown document {record.document!r}")
        document = documents[record.document]
    elif record.spans:
        raise ValueError(f"datum {record.id} has spans but no document")

    spans = {
        key: [TokenSpan(document, span.sentence, span.start, span.end) for span in values]
        for key, values in record.spans.items()
    }
    return Datum(id=record.id, label=record.label, document=document, spans=spans, strings=dict(record.strings))


def _span_getter(key: str):
    return lambda datum: datum.spans.get(key, [])


def _string_getter(key: str):
    return lambda datum: datum.strings.get(key, "")


def load_corpus(path: Union[str, Path], datum_tools: Optional[DatumTools] = None) -> Tuple[List[Datum], DatumTools]:
    """Read documents, gazetteers and datums from ``path``.

    Raises:
        DataFormatError: a line is not valid JSON, fails validation or refers
            to a document that has not been declared yet.
    """
    path = Path(path)
    tools = datum_tools if datum_tools is not None else DatumTools()
    documents: Dict[str, Document] = {}
    data: List[Datum] = []
    span_keys: List[str] = []
    string_keys: List[str] = []

    for line, obj in _iter_jsonl(path):
        record = parse_record(obj, line=line, source=str(path))
        try:
            if isinstance(record, DocumentRecord):
                if record.name in documents:
                    raise ValueError(f"duplicate document {record.name!r}")
                documents[record.name] = build_document(record)
            elif isinstance(record, GazetteerRecord):
                tools.add_gazetteer(Gazetteer(record.name, record.entries))
            else:
                datum = build_datum(record, documents)
                data.append(datum)
                span_keys.extend(k for k in datum.spans if k not in span_keys)
                string_keys.extend(k for k in datum.strings if k not in string_keys)
        except ValueError as e:
            raise DataFormatError(str(e), line=line, source=str(path))

    for key in span_keys:
        tools.add_token_span_extractor(key, _span_getter(key))
    for key in string_keys:
        tools.add_string_extractor(key, _string_getter(key))

    logger.info(
        f"Loaded {len(data)} datums over {len(documents)} documents from {path} "
        f"(span extractors: {span_keys}, string extractors: {string_keys})"
    )
    return data, tools


def load_data_set(
    path: Union[str, Path], name: Optional[str] = None, random_seed: Optional[int] = None
) -> FeaturizedDataSet:
    tools = DatumTools() if random_seed is None else DatumTools(random_seed=random_seed)
    data, tools = load_corpus(path, tools)
    return FeaturizedDataSet(name or Path(path).stem, data, tools)
