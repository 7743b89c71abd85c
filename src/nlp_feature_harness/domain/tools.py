"""
Datum tools: the named collaborators a configuration file can refer to.

Token-span and string extractors, gazetteers and the component registry are
looked up here by name when parameters are deserialized. The tools also own
the global random source; workers get their own generators through
``make_local_random`` so results do not depend on thread interleaving.
"""

from typing import Callable, Dict, List, Optional

import numpy as np
from loguru import logger

from ..errors import ExtractionMismatch, UnresolvedReference
from ..registry import ComponentRegistry, default_registry
from .datum import Datum, TokenSpan
from .gazetteer import Gazetteer


class TokenSpanExtractor:
    """Named ``datum -> [TokenSpan]`` function that checks spans against their document."""

    def __init__(self, name: str, fn: Callable[[Datum], List[TokenSpan]]):
        self.name = name
        self._fn = fn

    def __call__(self, datum: Datum) -> List[TokenSpan]:
        spans = list(self._fn(datum))
        for span in spans:
            if not span.is_within_bounds():
                raise ExtractionMismatch(
                    f"Extractor '{self.name}' returned span "
                    f"(sentence={span.sentence_index}, tokens={span.start_token_index}:"
                    f"{span.end_token_index}) outside document '{span.document.name}' "
                    f"for datum {datum.id}"
                )
        return spans

    def __str__(self) -> str:
        return self.name


class StringExtractor:
    """Named ``datum -> str`` function."""

    def __init__(self, name: str, fn: Callable[[Datum], str]):
        self.name = name
        self._fn = fn

    def __call__(self, datum: Datum) -> str:
        return self._fn(datum)

    def __str__(self) -> str:
        return self.name


class DatumTools:
    def __init__(self, registry: Optional[ComponentRegistry] = None, random_seed: int = 1):
        self.registry = registry if registry is not None else default_registry()
        self._token_span_extractors: Dict[str, TokenSpanExtractor] = {}
        self._string_extractors: Dict[str, StringExtractor] = {}
        self._gazetteers: Dict[str, Gazetteer] = {}
        self.set_random_seed(random_seed)

    # Extractors -------------------------------------------------------------

    def add_token_span_extractor(self, name: str, fn: Callable[[Datum], List[TokenSpan]]) -> TokenSpanExtractor:
        extractor = TokenSpanExtractor(name, fn)
        self._token_span_extractors[name] = extractor
        return extractor

    def get_token_span_extractor(self, name: str) -> TokenSpanExtractor:
        if name not in self._token_span_extractors:
            raise UnresolvedReference(
                f"No token span extractor named '{name}' "
                f"(known: {', '.join(sorted(self._token_span_extractors)) or 'none'})"
            )
        return self._token_span_extractors[name]

    def add_string_extractor(self, name: str, fn: Callable[[Datum], str]) -> StringExtractor:
        extractor = StringExtractor(name, fn)
        self._string_extractors[name] = extractor
        return extractor

    def get_string_extractor(self, name: str) -> StringExtractor:
        if name not in self._string_extractors:
            raise UnresolvedReference(
                f"No string extractor named '{name}' "
                f"(known: {', '.join(sorted(self._string_extractors)) or 'none'})"
            )
        return self._string_extractors[name]

    # Gazetteers -------------------------------------------------------------

    def add_gazetteer(self, gazetteer: Gazetteer) -> None:
        self._gazetteers[gazetteer.name] = gazetteer

    def get_gazetteer(self, name: str) -> Gazetteer:
        if name not in self._gazetteers:
            raise UnresolvedReference(f"No gazetteer named '{name}'")
        return self._gazetteers[name]

    # Randomness -------------------------------------------------------------

    def set_random_seed(self, seed: int) -> None:
        self.random_seed = int(seed)
        self.global_random = np.random.default_rng(self.random_seed)
        logger.debug(f"Random seed set to {self.random_seed}")

    def make_local_random(self, seed: Optional[int] = None) -> np.random.Generator:
        """Independent generator for one worker; defaults to the global seed."""
        return np.random.default_rng(self.random_seed if seed is None else seed)
