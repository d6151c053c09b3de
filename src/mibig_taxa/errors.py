# SPDX-License-Identifier: MIT
# src/mibig_taxa/errors.py
"""
Exceptions raised by the taxon cache, its builder and the classifier.

Environmental failures (building, saving, loading) are OSError subclasses;
caller-actionable lookup and classification failures are ValueError
subclasses. Everything derives from MibigTaxonError.
"""


class MibigTaxonError(Exception):
    """Base class for all mibig_taxa errors."""


class BuildError(MibigTaxonError, OSError):
    """Building a cache from dump files failed."""


class PersistenceError(MibigTaxonError, OSError):
    """Reading or writing a cache file failed."""


class NotFound(MibigTaxonError, ValueError):
    """The requested taxon id is not in the cache."""

    def __init__(self, tax_id: int):
        self.tax_id = tax_id
        super().__init__(f"ID {tax_id} not found")


class InvalidAntismashTaxon(MibigTaxonError, ValueError):
    """The lineage is not covered by the antiSMASH rule table."""

    def __init__(self, taxon: str):
        self.taxon = taxon
        super().__init__(f"Can't map taxon {taxon} to an antiSMASH taxon")
