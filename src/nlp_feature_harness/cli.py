"""Command-line interface for running feature-engineering experiments."""

from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from nlp_feature_harness.config import load_settings
from nlp_feature_harness.data_loading import load_data_set
from nlp_feature_harness.errors import HarnessError
from nlp_feature_harness.experiment.experiment import ExperimentKCV
from nlp_feature_harness.shared.logging_utils import setup_logging

app = typer.Typer(help="Cross-validate NLP feature sets and models from experiment files")


def _prepare(config: Path, data: Path, log_level: Optional[str], max_threads: Optional[int]) -> ExperimentKCV:
    settings = load_settings()
    setup_logging(settings.log_file, level=log_level or settings.log_level)
    data_set = load_data_set(data, random_seed=settings.random_seed)
    experiment = ExperimentKCV(config.stem, data_set, max_threads=settings.max_threads)
    experiment.deserialize(config.read_text(encoding="utf-8"))
    if max_threads is not None:
        experiment.max_threads = max_threads
    return experiment


@app.command()
def run(
    config: Path = typer.Argument(..., exists=True, dir_okay=False, help="Experiment file"),
    data: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSONL corpus"),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for results.json and the trained experiment (default: NLP_HARNESS_OUTPUT_DIR or ./output)"
    ),
    max_threads: Optional[int] = typer.Option(
        None,
        "--max-threads",
        "-t",
        min=1,
        help="Worker threads for fold units (overrides maxThreads in the experiment file)"
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (default: NLP_HARNESS_LOG_LEVEL or INFO)"
    ),
    progress: bool = typer.Option(
        False,
        "--progress",
        help="Show a progress bar over fold units"
    )
):
    """Cross-validate the experiment, then train on all data and save it."""
    try:
        experiment = _prepare(config, data, log_level, max_threads)
        output_dir = output_dir or load_settings().output_dir
        succeeded = experiment.execute(show_progress=progress)
        experiment.result.write_json(output_dir / "results.json")
        if not succeeded:
            raise typer.Exit(1)

        experiment.train_final_model()
        trained_path = output_dir / f"{experiment.name}.trained"
        trained_path.write_text(experiment.serialize_trained(), encoding="utf-8")
        logger.info(f"Wrote trained experiment to {trained_path}")
    except HarnessError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)

    for name, score in experiment.summary():
        typer.echo(f"{name}\t{score:.4f}")


@app.command()
def vocabulary(
    config: Path = typer.Argument(..., exists=True, dir_okay=False, help="Experiment file"),
    data: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSONL corpus"),
    feature: Optional[str] = typer.Option(
        None,
        "--feature",
        "-f",
        help="Reference name of one feature whose terms are listed"
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (DEBUG also logs term counts by frequency)"
    )
):
    """Initialise the experiment's features and report their vocabularies."""
    try:
        experiment = _prepare(config, data, log_level, None)
        features = experiment.data_set.features
        if feature is not None:
            features = [experiment.data_set.get_feature_by_reference_name(feature)]
    except HarnessError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)

    for item in features:
        typer.echo(f"{item.name}\t{item.vocabulary_size()}")
        if feature is not None:
            for index in range(item.vocabulary_size()):
                typer.echo(f"\t{index}\t{item.vocabulary_term(index)}")


if __name__ == "__main__":
    app()
