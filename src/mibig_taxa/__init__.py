# SPDX-License-Identifier: MIT
# src/mibig_taxa/__init__.py
"""
NCBI taxon cache for MIBiG.

Resolves NCBI taxonomy ids (including merged/deprecated ones) to lineage
records and maps each lineage to the antiSMASH taxon bucket
("bacteria", "fungi" or "plants").
"""

from .entry import TaxonEntry, RANKS, UNKNOWN
from .cache import TaxonCache
from .classifier import AntismashClassifier, Bucket, Rule, DEFAULT_RULES, classify, load_rules
from .builder import CacheBuilder, RankedLineageBuilder
from .errors import (
    MibigTaxonError,
    BuildError,
    PersistenceError,
    NotFound,
    InvalidAntismashTaxon,
)

__all__ = [
    "TaxonEntry",
    "RANKS",
    "UNKNOWN",
    "TaxonCache",
    "AntismashClassifier",
    "Bucket",
    "Rule",
    "DEFAULT_RULES",
    "classify",
    "load_rules",
    "CacheBuilder",
    "RankedLineageBuilder",
    "MibigTaxonError",
    "BuildError",
    "PersistenceError",
    "NotFound",
    "InvalidAntismashTaxon",
]
