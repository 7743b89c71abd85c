"""Exceptions raised by the harness.

Configuration errors abort a run and carry the offending line/field so the
message points at the experiment file. Extraction and fold failures name the
datum or the (fold, hyperparameter) unit involved.
"""

from typing import Any, Dict, Optional


class HarnessError(Exception):
    """Base class for every error raised by nlp_feature_harness."""


class ConfigurationError(HarnessError):
    def __init__(
        self, message: str, line: Optional[int] = None, field: Optional[str] = None
    ):
        self.line = line
        self.field = field
        self.detail = message
        super().__init__(self._render())

    def _render(self) -> str:
        where = []
        if self.line is not None:
            where.append(f"line {self.line}")
        if self.field is not None:
            where.append(f"field '{self.field}'")
        if not where:
            return self.detail
        return f"{self.detail} ({', '.join(where)})"

    def at(self, line: Optional[int] = None, field: Optional[str] = None):
        """Fill in location details that were unknown where the error was raised."""
        if self.line is None and line is not None:
            self.line = line
        if self.field is None and field is not None:
            self.field = field
        self.args = (self._render(),)
        return self


class UnknownComponentType(ConfigurationError):
    pass


class UnknownParameter(ConfigurationError):
    pass


class InvalidParameterValue(ConfigurationError):
    pass


class UnresolvedReference(ConfigurationError):
    pass


class ExtractionMismatch(HarnessError):
    """A span extractor returned spans outside the bounds of the datum's document."""


class FeatureStateError(HarnessError):
    """A feature was used before ``init`` or before its vocabulary was loaded."""


class FoldExecutionError(HarnessError):
    def __init__(self, fold: int, assignment: Dict[str, Any], cause: BaseException):
        self.fold = fold
        self.assignment = dict(assignment)
        self.cause = cause
        super().__init__(
            f"Fold {fold} with hyperparameters {self.assignment} failed: "
            f"{type(cause).__name__}: {cause}"
        )


class DataFormatError(HarnessError):
    def __init__(self, message: str, line: Optional[int] = None, source: Optional[str] = None):
        self.line = line
        self.source = source
        location = ""
        if source is not None:
            location = f"{source}:{line}: " if line is not None else f"{source}: "
        elif line is not None:
            location = f"line {line}: "
        super().__init__(f"{location}{message}")
