# SPDX-License-Identifier: MIT
# src/mibig_taxa/schema.py
"""
Parquet schema of a saved taxon cache.

One row per live taxon (replaced_by is null) plus one row per deprecated id
(replaced_by holds the current id, lineage columns are null).
"""

import pyarrow as pa

from .entry import RANKS

FORMAT_KEY = b"mibig_taxa.format"
FORMAT_VERSION = b"1"


class TaxonCacheSchema:
    """Schema for taxon cache files."""

    @staticmethod
    def get_schema() -> pa.Schema:
        """Return PyArrow schema for cache rows."""
        return pa.schema(
            [
                ("tax_id", pa.int64()),                   # NCBI taxid, unique per file
                ("name", pa.string()),                    # Scientific name, null for deprecated rows
                *[(rank, pa.string()) for rank in RANKS], # Lineage, "Unknown" when unresolved
                ("replaced_by", pa.int64()),              # Current taxid for merged ids
            ],
            metadata={FORMAT_KEY: FORMAT_VERSION},
        )

    @staticmethod
    def column_names():
        return [f.name for f in TaxonCacheSchema.get_schema()]
