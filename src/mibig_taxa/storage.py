# SPDX-License-Identifier: MIT
# src/mibig_taxa/storage.py
"""
Save and load taxon caches as Parquet files.
"""
from __future__ import annotations
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Mapping, Tuple, Union

import pyarrow as pa
import pyarrow.parquet as pq

from .entry import RANKS, TaxonEntry
from .errors import PersistenceError
from .schema import FORMAT_KEY, FORMAT_VERSION, TaxonCacheSchema

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _to_table(mappings: Mapping[int, TaxonEntry], deprecated_ids: Mapping[int, int]) -> pa.Table:
    schema = TaxonCacheSchema.get_schema()
    entries = list(mappings.values())
    n_dep = len(deprecated_ids)

    columns = {
        "tax_id": [e.tax_id for e in entries] + list(deprecated_ids.keys()),
        "name": [e.name for e in entries] + [None] * n_dep,
        "replaced_by": [None] * len(entries) + list(deprecated_ids.values()),
    }
    for rank in RANKS:
        columns[rank] = [e.rank(rank) for e in entries] + [None] * n_dep

    arrays = [pa.array(columns[f.name], type=f.type) for f in schema]
    return pa.Table.from_arrays(arrays, schema=schema)


def save_cache(
    path: PathLike,
    mappings: Mapping[int, TaxonEntry],
    deprecated_ids: Mapping[int, int],
) -> int:
    """
    Write the cache to `path`, overwriting any existing file.

    Returns:
        Number of live entries written
    """
    p = Path(path)
    try:
        table = _to_table(mappings, deprecated_ids)
        p.parent.mkdir(parents=True, exist_ok=True)
        # the existing file stays in place until the new one is complete
        fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
        os.close(fd)
        try:
            pq.write_table(table, tmp, compression="snappy")
            os.replace(tmp, p)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except (OSError, pa.ArrowException) as e:
        raise PersistenceError(f"Failed to write taxon cache {p}: {e}") from e

    logger.info(f"Wrote {len(mappings)} taxa and {len(deprecated_ids)} deprecated ids to {p}")
    return len(mappings)


def _from_table(table: pa.Table, source: Path) -> Tuple[Dict[int, TaxonEntry], Dict[int, int]]:
    meta = table.schema.metadata or {}
    version = meta.get(FORMAT_KEY)
    if version != FORMAT_VERSION:
        raise PersistenceError(
            f"{source} is not a taxon cache file (format {version!r}, expected {FORMAT_VERSION!r})"
        )
    expected = TaxonCacheSchema.get_schema()
    missing = [f.name for f in expected if f.name not in table.column_names]
    if missing:
        raise PersistenceError(f"{source} is missing columns: {missing}")
    mistyped = [
        f"{f.name} ({table.schema.field(f.name).type}, expected {f.type})"
        for f in expected
        if not table.schema.field(f.name).type.equals(f.type)
    ]
    if mistyped:
        raise PersistenceError(f"{source} has columns of the wrong type: {mistyped}")

    cols = {c: table.column(c).to_pylist() for c in TaxonCacheSchema.column_names()}
    mappings: Dict[int, TaxonEntry] = {}
    deprecated: Dict[int, int] = {}

    for i, tax_id in enumerate(cols["tax_id"]):
        if tax_id is None:
            raise PersistenceError(f"{source}: row {i} has no tax_id")
        if tax_id in mappings or tax_id in deprecated:
            raise PersistenceError(f"{source}: tax_id {tax_id} appears more than once")
        new_id = cols["replaced_by"][i]
        if new_id is not None:
            deprecated[tax_id] = new_id
            continue
        if cols["name"][i] is None:
            raise PersistenceError(f"{source}: taxon {tax_id} has no name")
        mappings[tax_id] = TaxonEntry.from_dict({c: cols[c][i] for c in ("tax_id", "name", *RANKS)})

    return mappings, deprecated


def load_cache(path: PathLike) -> Tuple[Dict[int, TaxonEntry], Dict[int, int]]:
    """
    Read a cache written by save_cache().

    Returns:
        (mappings, deprecated_ids)
    """
    p = Path(path)
    try:
        table = pq.read_table(str(p))
    except (OSError, pa.ArrowException) as e:
        raise PersistenceError(f"Failed to read taxon cache {p}: {e}") from e

    mappings, deprecated = _from_table(table, p)
    logger.info(f"Loaded {len(mappings)} taxa and {len(deprecated)} deprecated ids from {p}")
    return mappings, deprecated
