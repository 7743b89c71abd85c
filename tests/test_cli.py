import sys

import orjson
import pytest
from loguru import logger
from typer.testing import CliRunner

from nlp_feature_harness.cli import app

runner = CliRunner()

CONFIG = """\
randomSeed=5
crossValidationFolds=2
gridSearchParameterValues=C(0.5, 5)
feature_path=DependencyPath(sourceTokenExtractor=source, targetTokenExtractor=target)
feature_dist=SurfaceDistance(sourceTokenExtractor=source, targetTokenExtractor=target)
model=LogisticRegression()
evaluation=Accuracy()
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ["NLP_HARNESS_LOG_LEVEL", "NLP_HARNESS_MAX_THREADS", "NLP_HARNESS_OUTPUT_DIR", "NLP_HARNESS_RANDOM_SEED", "NLP_HARNESS_LOG_FILE"]:
        monkeypatch.delenv(name, raising=False)
    yield
    # the CLI points loguru at the runner's captured stderr
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def corpus(tmp_path):
    records = [
        {
            "kind": "document",
            "name": "d1",
            "sentences": [["Apple", "sued", "Acme", "today"]],
            "dependencies": [["root(ROOT-0, sued-2)", "nsubj(sued-2, Apple-1)", "dobj(sued-2, Acme-3)", "tmod(sued-2, today-4)"]],
        }
    ]
    for i in range(8):
        target = 2 if i % 2 else 3
        records.append(
            {
                "kind": "datum",
                "id": f"x{i}",
                "label": "sues" if i % 2 else "other",
                "document": "d1",
                "spans": {
                    "source": [{"sentence": 0, "start": 0, "end": 1}],
                    "target": [{"sentence": 0, "start": target, "end": target + 1}],
                },
            }
        )
    path = tmp_path / "corpus.jsonl"
    path.write_bytes(b"\n".join(orjson.dumps(r) for r in records) + b"\n")
    return path


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "tiny.experiment"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def test_run_writes_results_and_trained_state(tmp_path, corpus, config):
    out = tmp_path / "out"
    result = runner.invoke(
        app,
        ["run", str(config), str(corpus), "--output-dir", str(out), "--max-threads", "2", "--log-level", "WARNING"],
    )
    assert result.exit_code == 0, result.output
    assert "Accuracy()" in result.output

    payload = orjson.loads((out / "results.json").read_bytes())
    assert len(payload["folds"]) == 2
    assert payload["aggregate"]["Accuracy()"] >= 0.0

    trained = (out / "tiny.trained").read_text(encoding="utf-8")
    assert "feature_path=DependencyPath(" in trained
    assert "model=LogisticRegression(" in trained


def test_trained_state_can_be_run_again(tmp_path, corpus, config):
    out = tmp_path / "out"
    first = runner.invoke(app, ["run", str(config), str(corpus), "--output-dir", str(out), "--log-level", "ERROR"])
    assert first.exit_code == 0, first.output

    again = runner.invoke(
        app, ["run", str(out / "tiny.trained"), str(corpus), "--output-dir", str(tmp_path / "again"), "--log-level", "ERROR"]
    )
    assert again.exit_code == 0, again.output
    assert first.output == again.output


def test_configuration_error_exits_nonzero(tmp_path, corpus):
    bad = tmp_path / "bad.experiment"
    bad.write_text("model=MajorityLabel()\nevaluation=Accuracy()\nfeature=Unknown()\n", encoding="utf-8")
    result = runner.invoke(app, ["run", str(bad), str(corpus), "--output-dir", str(tmp_path / "out"), "--log-level", "ERROR"])
    assert result.exit_code == 1
    assert not (tmp_path / "out" / "results.json").exists()


def test_feature_without_extractor_exits_nonzero(tmp_path, corpus):
    bad = tmp_path / "bad.experiment"
    bad.write_text("model=MajorityLabel()\nevaluation=Accuracy()\nfeature_d=SurfaceDistance()\n", encoding="utf-8")
    result = runner.invoke(app, ["run", str(bad), str(corpus), "--output-dir", str(tmp_path / "out"), "--log-level", "ERROR"])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert not (tmp_path / "out" / "results.json").exists()


def test_vocabulary_command(corpus, config):
    result = runner.invoke(app, ["vocabulary", str(config), str(corpus), "--feature", "path", "--log-level", "ERROR"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[0] == "path\t2"
    assert "<nsubj>dobj" in result.output
    assert "<nsubj>tmod" in result.output


def test_vocabulary_unknown_feature(corpus, config):
    result = runner.invoke(app, ["vocabulary", str(config), str(corpus), "--feature", "nope", "--log-level", "ERROR"])
    assert result.exit_code == 1
