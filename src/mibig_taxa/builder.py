# SPDX-License-Identifier: MIT
# src/mibig_taxa/builder.py
"""
Build cache contents from NCBI taxonomy dumps.

The cache only relies on the CacheBuilder contract. RankedLineageBuilder is
the default implementation; it reads the new_taxdump files:

  rankedlineage.dmp: tax_id | tax_name | species | genus | family | order | class | phylum | kingdom | superkingdom |
  merged.dmp:        old_tax_id | new_tax_id |

and keeps only the taxa referenced by MIBiG entry JSON files in a data
directory.
"""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol, Set, Tuple, Union

from .entry import RANKS, TaxonEntry
from .errors import BuildError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Mappings = Dict[int, TaxonEntry]
DeprecatedIds = Dict[int, int]


class CacheBuilder(Protocol):
    """
    Produce (mappings, deprecated_ids) where no deprecated id is live and every
    deprecated id points at a live id in one hop. Raise BuildError on failure.
    """
    def build(
        self, taxdump: PathLike, merged_id_dump: PathLike, datadir: PathLike
    ) -> Tuple[Mappings, DeprecatedIds]: ...


# ---------- Dump parsing ----------

def _split_dmp(line: str) -> List[str]:
    # Format: field<tab>|<tab>field<tab>|<tab>...<tab>|
    line = line.rstrip("\n")
    if line.endswith("\t|"):
        line = line[:-2]
    return [f.strip() for f in line.split("\t|\t")]


def _iter_rows(path: Path, n_fields: int) -> Iterator[Tuple[int, List[str]]]:
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            parts = _split_dmp(line)
            if len(parts) != n_fields:
                raise BuildError(f"{path}:{lineno}: expected {n_fields} fields, got {len(parts)}")
            yield lineno, parts


def _parse_id(value: str, path: Path, lineno: int) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise BuildError(f"{path}:{lineno}: invalid taxon id {value!r}") from e


def parse_ranked_lineage(path: PathLike) -> Mappings:
    """Read rankedlineage.dmp into tax_id -> TaxonEntry."""
    p = Path(path)
    mappings: Mappings = {}
    for lineno, parts in _iter_rows(p, 2 + len(RANKS)):
        tax_id = _parse_id(parts[0], p, lineno)
        # dmp columns run species..superkingdom, same order as RANKS
        ranks = dict(zip(RANKS, parts[2:]))
        mappings[tax_id] = TaxonEntry.from_dict({"tax_id": tax_id, "name": parts[1], **ranks})
    logger.info(f"Parsed {len(mappings)} taxa from {p}")
    return mappings


def parse_merged(path: PathLike) -> DeprecatedIds:
    """Read merged.dmp into old_tax_id -> new_tax_id."""
    p = Path(path)
    merged: DeprecatedIds = {}
    for lineno, parts in _iter_rows(p, 2):
        merged[_parse_id(parts[0], p, lineno)] = _parse_id(parts[1], p, lineno)
    logger.info(f"Parsed {len(merged)} merged ids from {p}")
    return merged


def flatten_merged(merged: DeprecatedIds, live: Mappings) -> DeprecatedIds:
    """
    Resolve merge chains (A -> B -> C) to a single hop onto a live id.
    Live ids, cycles and chains that never reach a live id are dropped.
    """
    out: DeprecatedIds = {}
    dropped = 0
    for old_id in merged:
        if old_id in live:
            dropped += 1
            continue
        seen = {old_id}
        target = merged[old_id]
        while target not in live and target in merged and target not in seen:
            seen.add(target)
            target = merged[target]
        if target in live:
            out[old_id] = target
        else:
            dropped += 1
    if dropped:
        logger.warning(f"Dropped {dropped} merged ids that do not resolve to a live taxon")
    return out


# ---------- MIBiG references ----------

def _tax_id_from_entry(data: dict) -> Optional[int]:
    # MIBiG 4: {"taxonomy": {"ncbiTaxId": ...}}; MIBiG 1-3: {"cluster": {"ncbi_tax_id": "..."}}
    raw = None
    if isinstance(data.get("taxonomy"), dict):
        raw = data["taxonomy"].get("ncbiTaxId")
    if raw is None and isinstance(data.get("cluster"), dict):
        raw = data["cluster"].get("ncbi_tax_id")
    if raw is None or raw == "":
        return None
    return int(raw)


def collect_referenced_ids(datadir: PathLike) -> Set[int]:
    """Taxon ids referenced by all MIBiG JSON files below `datadir`."""
    d = Path(datadir)
    if not d.is_dir():
        raise BuildError(f"Data directory {d} does not exist or is not a directory")

    ids: Set[int] = set()
    n_files = 0
    for p in sorted(d.rglob("*.json")):
        n_files += 1
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
            tax_id = _tax_id_from_entry(data) if isinstance(data, dict) else None
        except (OSError, ValueError, TypeError) as e:
            raise BuildError(f"Failed to read MIBiG entry {p}: {e}") from e
        if tax_id is None:
            logger.debug(f"No NCBI taxon id in {p}")
            continue
        ids.add(tax_id)
    logger.info(f"Found {len(ids)} distinct taxon ids in {n_files} MIBiG entries under {d}")
    return ids


# ---------- Builder ----------

class RankedLineageBuilder:
    """Default CacheBuilder for rankedlineage.dmp + merged.dmp + MIBiG data dir."""

    def build(
        self, taxdump: PathLike, merged_id_dump: PathLike, datadir: PathLike
    ) -> Tuple[Mappings, DeprecatedIds]:
        try:
            lineages = parse_ranked_lineage(taxdump)
            merged = flatten_merged(parse_merged(merged_id_dump), lineages)
        except BuildError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise BuildError(f"Failed to read taxonomy dump: {e}") from e

        wanted = collect_referenced_ids(datadir)
        if not wanted:
            logger.warning(f"No MIBiG taxon references found in {datadir}; keeping the full dump")
            return lineages, merged

        keep_ids = {merged.get(t, t) for t in wanted}
        missing = sorted(t for t in keep_ids if t not in lineages)
        if missing:
            logger.warning(f"{len(missing)} referenced taxon ids are not in {taxdump}: {missing[:10]}")

        mappings = {t: lineages[t] for t in keep_ids if t in lineages}
        deprecated = {old: new for old, new in merged.items() if new in mappings}
        logger.info(f"Built cache with {len(mappings)} taxa and {len(deprecated)} deprecated ids")
        return mappings, deprecated
