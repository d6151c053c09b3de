# SPDX-License-Identifier: MIT
# src/mibig_taxa/cache.py
"""
Taxon cache keyed by NCBI taxon id, with merged/deprecated id resolution.

A cache is filled once, either by a CacheBuilder from the NCBI dumps or by
loading a file written with save_path(), and is read-only afterwards. There
is no internal locking: callers must not run initialise*/load* concurrently
with lookups.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from .builder import CacheBuilder, RankedLineageBuilder
from .classifier import AntismashClassifier
from .entry import RANKS, TaxonEntry
from .errors import BuildError, NotFound
from .storage import load_cache, save_cache

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class TaxonCache:
    """
    Owns two mappings:
    - mappings: tax_id -> TaxonEntry
    - deprecated_ids: merged/retired tax_id -> current tax_id (one hop)
    """

    def __init__(
        self,
        cachefile: Optional[PathLike] = None,
        *,
        classifier: Optional[AntismashClassifier] = None,
        builder: Optional[CacheBuilder] = None,
    ):
        """
        Args:
            cachefile: Optional cache file to load right away
            classifier: Rule table used by get_antismash_taxon (default: built-in rules)
            builder: Used by initialise_from_paths (default: RankedLineageBuilder)
        """
        self.mappings: Dict[int, TaxonEntry] = {}
        self.deprecated_ids: Dict[int, int] = {}
        self.classifier = classifier or AntismashClassifier()
        self.builder = builder or RankedLineageBuilder()

        if cachefile is not None:
            self.load_path(cachefile)

    def __len__(self) -> int:
        return len(self.mappings)

    def __contains__(self, tax_id: object) -> bool:
        return tax_id in self.mappings

    def __repr__(self) -> str:
        return f"TaxonCache(taxa={len(self.mappings)}, deprecated_ids={len(self.deprecated_ids)})"

    # ---------------- Population ----------------

    @staticmethod
    def _check_built(mappings: Dict[int, TaxonEntry], deprecated_ids: Dict[int, int]) -> None:
        """Reject builder output that save_path could not write back faithfully."""
        rekeyed = [k for k, e in mappings.items() if k != e.tax_id]
        if rekeyed:
            raise BuildError(
                f"{len(rekeyed)} taxa are stored under a different id than their tax_id, e.g. {rekeyed[:5]}"
            )
        shadowed = [i for i in deprecated_ids if i in mappings]
        if shadowed:
            raise BuildError(f"{len(shadowed)} deprecated ids are also live ids, e.g. {shadowed[:5]}")

    def _replace(self, mappings: Dict[int, TaxonEntry], deprecated_ids: Dict[int, int]) -> None:
        self.mappings = dict(mappings)
        self.deprecated_ids = dict(deprecated_ids)

        dangling = [i for i, new in self.deprecated_ids.items() if new not in self.mappings]
        if dangling:
            logger.warning(f"{len(dangling)} deprecated ids point at missing taxa, e.g. {dangling[:5]}")

    def initialise_from_paths(self, taxdump: PathLike, merged_id_dump: PathLike, datadir: PathLike) -> None:
        """
        Build the cache from the NCBI dumps and a MIBiG data directory.

        Raises:
            BuildError: the builder failed; the cache is left empty
        """
        logger.info(f"Building taxon cache from {taxdump}, {merged_id_dump} and {datadir}")
        try:
            mappings, deprecated_ids = self.builder.build(taxdump, merged_id_dump, datadir)
        except BuildError:
            self._replace({}, {})
            raise
        except (OSError, ValueError) as e:
            self._replace({}, {})
            raise BuildError(f"Failed to build taxon cache: {e}") from e
        try:
            self._check_built(mappings, deprecated_ids)
        except BuildError:
            self._replace({}, {})
            raise
        self._replace(mappings, deprecated_ids)

    def load_path(self, path: PathLike) -> int:
        """
        Replace the contents with a saved cache.

        Returns:
            Number of taxa loaded

        Raises:
            PersistenceError: unreadable or corrupt file; contents are unchanged
        """
        mappings, deprecated_ids = load_cache(path)
        self._replace(mappings, deprecated_ids)
        return len(self.mappings)

    def save_path(self, path: PathLike) -> int:
        """
        Write the cache to `path`, overwriting any existing file.

        Returns:
            Number of taxa written
        """
        return save_cache(path, self.mappings, self.deprecated_ids)

    # short names, as exposed by the original Python module
    def initialise(self, taxdump: PathLike, merged_id_dump: PathLike, datadir: PathLike) -> None:
        self.initialise_from_paths(taxdump, merged_id_dump, datadir)

    def load(self, cachefile: PathLike) -> int:
        return self.load_path(cachefile)

    def save(self, cachefile: PathLike) -> int:
        return self.save_path(cachefile)

    # ---------------- Lookups ----------------

    def resolve_id(self, tax_id: int, allow_deprecated: bool = False) -> int:
        """
        Live id for `tax_id`: itself if live, else (only when allow_deprecated)
        the id it was merged into.

        Raises:
            NotFound: neither rule applies
        """
        if tax_id in self.mappings:
            return tax_id
        if allow_deprecated:
            new_id = self.deprecated_ids.get(tax_id)
            if new_id is not None and new_id in self.mappings:
                logger.debug(f"Resolved deprecated taxon id {tax_id} -> {new_id}")
                return new_id
        raise NotFound(tax_id)

    def get(self, tax_id: int, allow_deprecated: bool = False) -> TaxonEntry:
        return self.mappings[self.resolve_id(tax_id, allow_deprecated)]

    def get_name_by_id(self, tax_id: int, allow_deprecated: bool = False) -> str:
        return self.get(tax_id, allow_deprecated).name

    def get_antismash_taxon(self, tax_id: int, allow_deprecated: bool = False) -> str:
        """antiSMASH bucket of the taxon; InvalidAntismashTaxon propagates as is."""
        return self.classifier.classify(self.get(tax_id, allow_deprecated))

    # ---------------- Export ----------------

    def to_frame(self) -> pd.DataFrame:
        """One row per live taxon, plus the ids merged into it as a ';'-joined column."""
        merged_into: Dict[int, list] = {}
        for old, new in sorted(self.deprecated_ids.items()):
            merged_into.setdefault(new, []).append(str(old))

        rows = []
        for tax_id in sorted(self.mappings):
            row = self.mappings[tax_id].to_dict()
            row["deprecated_ids"] = ";".join(merged_into.get(tax_id, []))
            rows.append(row)
        return pd.DataFrame(rows, columns=["tax_id", "name", *RANKS, "deprecated_ids"])
