# SPDX-License-Identifier: MIT
# src/mibig_taxa/classifier.py
"""
Map a taxon lineage to the antiSMASH taxon bucket used downstream to pick
genome-analysis rule sets.

The decision procedure is an ordered rule table: each rule lists the rank
values it requires and either names a bucket or the rank whose value gets
rejected. Rules are walked top-down and the first match wins, so a rule
that only constrains the higher ranks acts as the "any other value" branch
for the ranks below it.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Union

import yaml

from .entry import RANKS, UNKNOWN, TaxonEntry
from .errors import InvalidAntismashTaxon

logger = logging.getLogger(__name__)


class Bucket(str, Enum):
    BACTERIA = "bacteria"
    FUNGI = "fungi"
    PLANTS = "plants"


@dataclass(frozen=True)
class Rule:
    name: str
    when: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    bucket: Optional[Bucket] = None
    reject: Optional[str] = None   # rank whose value is reported on rejection

    def __post_init__(self):
        if (self.bucket is None) == (self.reject is None):
            raise ValueError(f"Rule '{self.name}' needs exactly one of 'bucket' or 'reject'")
        bad = [r for r in self.when if r not in RANKS]
        if self.reject is not None and self.reject not in RANKS:
            bad.append(self.reject)
        if bad:
            raise ValueError(f"Rule '{self.name}' uses unknown rank(s) {bad}. Expected: {list(RANKS)}")
        if self.bucket is not None:
            object.__setattr__(self, "bucket", Bucket(self.bucket))
        object.__setattr__(self, "when", {r: frozenset(v) for r, v in self.when.items()})

    def matches(self, entry: TaxonEntry) -> bool:
        return all(entry.rank(r) in values for r, values in self.when.items())

    def apply(self, entry: TaxonEntry) -> str:
        if self.reject is not None:
            raise InvalidAntismashTaxon(entry.rank(self.reject))
        return self.bucket.value


def _rule(name: str, when: Dict[str, Iterable[str]], **outcome) -> Rule:
    return Rule(name=name, when={r: frozenset(v) for r, v in when.items()}, **outcome)


_EUK = {"superkingdom": ["Eukaryota"]}

DEFAULT_RULES: List[Rule] = [
    _rule("prokaryotes", {"superkingdom": ["Archaea", "Bacteria"]}, bucket=Bucket.BACTERIA),
    _rule("fungi", {**_EUK, "kingdom": ["Fungi"]}, bucket=Bucket.FUNGI),
    _rule("green_plants", {**_EUK, "kingdom": ["Viridiplantae"]}, bucket=Bucket.PLANTS),
    # red algae and diatoms count as plants for the pipeline
    _rule("algae_by_phylum",
          {**_EUK, "kingdom": [UNKNOWN], "phylum": ["Rhodophyta", "Bacillariophyta"]},
          bucket=Bucket.PLANTS),
    _rule("dinoflagellates",
          {**_EUK, "kingdom": [UNKNOWN], "phylum": [UNKNOWN], "class": ["Dinophyceae"]},
          bucket=Bucket.PLANTS),
    _rule("unmapped_class", {**_EUK, "kingdom": [UNKNOWN], "phylum": [UNKNOWN]}, reject="class"),
    _rule("unmapped_phylum", {**_EUK, "kingdom": [UNKNOWN]}, reject="phylum"),
    _rule("unmapped_kingdom", _EUK, reject="kingdom"),
    # Many metagenomes are superkingdom "Unknown" but still bacterial
    _rule("metagenome_fallback", {}, bucket=Bucket.BACTERIA),
]


class AntismashClassifier:
    """Walks a rule table; the last rule must be unconditional so every lineage gets an outcome."""

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        rules = list(DEFAULT_RULES if rules is None else rules)
        if not rules:
            raise ValueError("Rule table is empty")
        if rules[-1].when:
            raise ValueError(
                f"Last rule '{rules[-1].name}' must have no conditions so every lineage is covered"
            )
        self.rules = rules

    def match(self, entry: TaxonEntry) -> Rule:
        for rule in self.rules:
            if rule.matches(entry):
                return rule
        # unreachable: the constructor guarantees a catch-all
        raise AssertionError("rule table has no catch-all")

    def classify(self, entry: TaxonEntry) -> str:
        rule = self.match(entry)
        logger.debug("%s matched rule %s", entry, rule.name)
        return rule.apply(entry)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AntismashClassifier":
        return cls(load_rules(path))


def parse_rules(data: Any) -> List[Rule]:
    """
    Build a rule table from parsed YAML. Accepts either a list of rules or a
    mapping with a 'rules' list. Each rule: name, when (rank -> value or list),
    and one of bucket / reject.
    """
    items = data.get("rules") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ValueError("Rule file must contain a list of rules (optionally under 'rules')")

    rules: List[Rule] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Rule #{i} is not a mapping: {item!r}")
        when = item.get("when") or {}
        if not isinstance(when, dict):
            raise ValueError(f"Rule #{i}: 'when' must be a mapping of rank -> values")
        for rank, values in when.items():
            ok = isinstance(values, str) or (
                isinstance(values, list) and all(isinstance(v, str) for v in values)
            )
            if not ok:
                raise ValueError(f"Rule #{i}: rank '{rank}' needs a value or a list of values, got {values!r}")
        when = {r: [v] if isinstance(v, str) else list(v) for r, v in when.items()}
        try:
            bucket = Bucket(item["bucket"]) if item.get("bucket") is not None else None
        except ValueError as e:
            raise ValueError(
                f"Rule #{i}: unknown bucket '{item['bucket']}'. Expected one of: {[b.value for b in Bucket]}"
            ) from e
        rules.append(_rule(item.get("name") or f"rule_{i}", when, bucket=bucket, reject=item.get("reject")))
    return rules


def load_rules(path: Union[str, Path]) -> List[Rule]:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or []
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in rule file {p}: {e}") from e
    rules = parse_rules(data)
    logger.info(f"Loaded {len(rules)} antiSMASH taxon rules from {p}")
    return rules


_DEFAULT = AntismashClassifier()


def classify(entry: TaxonEntry) -> str:
    """Classify with the built-in rule table."""
    return _DEFAULT.classify(entry)
