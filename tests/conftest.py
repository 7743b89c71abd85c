# conftest.py  (tests root)
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.resolve()
SRC = ROOT / "src"

# Add src directory to Python path for proper imports
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from nlp_feature_harness.data_loading import build_document  # noqa: E402
from nlp_feature_harness.data_loading import DocumentRecord  # noqa: E402
from nlp_feature_harness.domain.datum import Datum, TokenSpan  # noqa: E402
from nlp_feature_harness.domain.gazetteer import Gazetteer  # noqa: E402
from nlp_feature_harness.domain.tools import DatumTools  # noqa: E402
from nlp_feature_harness.features.dataset import FeaturizedDataSet  # noqa: E402

# Two sentences:
#   0: Apple sued Acme yesterday      (sued -> Apple nsubj, sued -> Acme dobj, sued -> yesterday tmod)
#   1: Acme denied it                 (denied -> Acme nsubj, denied -> it dobj)
DOCUMENT = {
    "name": "doc1",
    "sentences": [["Apple", "sued", "Acme", "yesterday"], ["Acme", "denied", "it"]],
    "dependencies": [
        ["root(ROOT-0, sued-2)", "nsubj(sued-2, Apple-1)", "dobj(sued-2, Acme-3)", "tmod(sued-2, yesterday-4)"],
        ["root(ROOT-0, denied-2)", "nsubj(denied-2, Acme-1)", "dobj(denied-2, it-3)"],
    ],
}


def _make_datum(document, datum_id, label, source, target, name=""):
    """Datum with one source and one target span given as (sentence, start, end)."""
    return Datum(
        id=datum_id,
        label=label,
        document=document,
        spans={
            "source": [TokenSpan(document, *source)],
            "target": [TokenSpan(document, *target)],
        },
        strings={"name": name},
    )


@pytest.fixture
def make_datum():
    return _make_datum


@pytest.fixture
def document():
    return build_document(DocumentRecord(**DOCUMENT))


@pytest.fixture
def datum_tools():
    tools = DatumTools(random_seed=7)
    tools.add_token_span_extractor("source", lambda d: d.spans.get("source", []))
    tools.add_token_span_extractor("target", lambda d: d.spans.get("target", []))
    tools.add_string_extractor("name", lambda d: d.strings.get("name", ""))
    tools.add_gazetteer(Gazetteer("companies", ["Apple", "Acme Corp", "Big  Bank Holdings"]))
    return tools


@pytest.fixture
def data_set(document, datum_tools):
    data = [
        _make_datum(document, "d0", "sues", (0, 0, 1), (0, 2, 3), name="apple"),
        _make_datum(document, "d1", "other", (0, 2, 3), (0, 3, 4), name="Acme"),
        _make_datum(document, "d2", "sues", (0, 0, 1), (0, 2, 3), name="Acme Corp"),
        _make_datum(document, "d3", "other", (1, 0, 1), (1, 2, 3), name="Big Bank"),
        _make_datum(document, "d4", "sues", (0, 0, 1), (0, 2, 3), name="nobody"),
        _make_datum(document, "d5", "other", (0, 0, 1), (1, 2, 3), name="Apple"),
    ]
    return FeaturizedDataSet("tiny", data, datum_tools)
