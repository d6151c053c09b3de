# SPDX-License-Identifier: MIT
# src/mibig_taxa/entry.py
"""
Lineage record for a single NCBI taxon.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

UNKNOWN = "Unknown"

# Lowest to highest, same column order as rankedlineage.dmp
RANKS: Tuple[str, ...] = (
    "species",
    "genus",
    "family",
    "order",
    "class",
    "phylum",
    "kingdom",
    "superkingdom",
)

# "class" is a keyword, so the dataclass field is class_
_RANK_ATTRS: Dict[str, str] = {r: ("class_" if r == "class" else r) for r in RANKS}


def _rank_value(value: Any) -> str:
    if value is None:
        return UNKNOWN
    value = str(value).strip()
    return value or UNKNOWN


@dataclass(frozen=True)
class TaxonEntry:
    """
    One taxon and the names of its ancestors at the eight main ranks.

    Ranks the lineage does not resolve hold the "Unknown" sentinel, never None.
    """
    tax_id: int
    name: str
    species: str = UNKNOWN
    genus: str = UNKNOWN
    family: str = UNKNOWN
    order: str = UNKNOWN
    class_: str = UNKNOWN
    phylum: str = UNKNOWN
    kingdom: str = UNKNOWN
    superkingdom: str = UNKNOWN

    def __post_init__(self):
        object.__setattr__(self, "tax_id", int(self.tax_id))
        object.__setattr__(self, "name", "" if self.name is None else str(self.name))
        for attr in _RANK_ATTRS.values():
            object.__setattr__(self, attr, _rank_value(getattr(self, attr)))

    def __str__(self) -> str:
        return f"{self.name} ({self.tax_id})"

    def rank(self, rank: str) -> str:
        """Value at `rank`, using the plain rank name ("class", not "class_")."""
        try:
            return getattr(self, _RANK_ATTRS[rank])
        except KeyError as e:
            raise KeyError(f"Unknown rank '{rank}'. Expected one of: {list(RANKS)}") from e

    def lineage(self) -> Dict[str, str]:
        return {r: self.rank(r) for r in RANKS}

    def get_antismash_taxon(self) -> str:
        from .classifier import classify
        return classify(self)

    # helper: convert to dict (used by storage and the CLI)
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"tax_id": self.tax_id, "name": self.name}
        out.update(self.lineage())
        return out

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "TaxonEntry":
        """
        Build an entry from a mapping keyed by tax_id, name and rank names.
        Missing ranks become "Unknown"; "class_" is accepted as well as "class".
        """
        kwargs: Dict[str, Any] = {"tax_id": data["tax_id"], "name": data.get("name")}
        for rank, attr in _RANK_ATTRS.items():
            kwargs[attr] = data.get(rank, data.get(attr))
        return TaxonEntry(**kwargs)
