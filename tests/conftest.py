# Ensure `src/` is on sys.path so tests can import `mibig_taxa` without requiring editable install
import json
import os
import sys

import pytest

HERE = os.path.dirname(__file__)
SRC = os.path.abspath(os.path.join(HERE, "..", "src"))
if os.path.isdir(SRC) and SRC not in sys.path:
    sys.path.insert(0, SRC)

from mibig_taxa import TaxonCache, TaxonEntry  # noqa: E402


def make_entry(tax_id, name, **ranks):
    """Helper to build a TaxonEntry; pass class via cls= since class is a keyword."""
    if "cls" in ranks:
        ranks["class"] = ranks.pop("cls")
    return TaxonEntry.from_dict({"tax_id": tax_id, "name": name, **ranks})


STREPTOMYCES = make_entry(
    1883, "Streptomyces",
    family="Streptomycetaceae", order="Kitasatosporales", cls="Actinomycetes",
    phylum="Actinomycetota", superkingdom="Bacteria",
)
ASPERGILLUS = make_entry(
    5061, "Aspergillus niger",
    genus="Aspergillus", family="Aspergillaceae", order="Eurotiales", cls="Eurotiomycetes",
    phylum="Ascomycota", kingdom="Fungi", superkingdom="Eukaryota",
)
ARABIDOPSIS = make_entry(
    3702, "Arabidopsis thaliana",
    genus="Arabidopsis", family="Brassicaceae", order="Brassicales", cls="Magnoliopsida",
    phylum="Streptophyta", kingdom="Viridiplantae", superkingdom="Eukaryota",
)
DROSOPHILA = make_entry(
    7227, "Drosophila melanogaster",
    genus="Drosophila", family="Drosophilidae", order="Diptera", cls="Insecta",
    phylum="Arthropoda", kingdom="Metazoa", superkingdom="Eukaryota",
)
METAGENOME = make_entry(256318, "metagenome")

ENTRIES = [STREPTOMYCES, ASPERGILLUS, ARABIDOPSIS, DROSOPHILA, METAGENOME]
DEPRECATED = {
    12345: 1883,    # merged into Streptomyces
    67890: 7227,    # merged into an unclassifiable taxon
    99999: 424242,  # points at a taxon that is not cached
}


class StaticBuilder:
    """CacheBuilder that hands back fixed contents and records its arguments."""

    def __init__(self, mappings=None, deprecated_ids=None, error=None):
        self.mappings = mappings or {}
        self.deprecated_ids = deprecated_ids or {}
        self.error = error
        self.calls = []

    def build(self, taxdump, merged_id_dump, datadir):
        self.calls.append((taxdump, merged_id_dump, datadir))
        if self.error is not None:
            raise self.error
        return dict(self.mappings), dict(self.deprecated_ids)


@pytest.fixture
def static_builder():
    return StaticBuilder({e.tax_id: e for e in ENTRIES}, DEPRECATED)


@pytest.fixture
def populated_cache(static_builder):
    cache = TaxonCache(builder=static_builder)
    cache.initialise_from_paths("rankedlineage.dmp", "merged.dmp", "mibig")
    return cache


# ---------- NCBI dump fixtures ----------

def dmp_line(*fields):
    return "\t|\t".join(str(f) for f in fields) + "\t|\n"


RANKED_LINEAGE_ROWS = [
    # tax_id, name, species, genus, family, order, class, phylum, kingdom, superkingdom
    (1883, "Streptomyces", "", "", "Streptomycetaceae", "Kitasatosporales", "Actinomycetes",
     "Actinomycetota", "", "Bacteria"),
    (1902, "Streptomyces coelicolor", "", "Streptomyces", "Streptomycetaceae", "Kitasatosporales",
     "Actinomycetes", "Actinomycetota", "", "Bacteria"),
    (5061, "Aspergillus niger", "", "Aspergillus", "Aspergillaceae", "Eurotiales", "Eurotiomycetes",
     "Ascomycota", "Fungi", "Eukaryota"),
    (2880, "Karenia brevis", "", "Karenia", "Kareniaceae", "Gymnodiniales", "Dinophyceae",
     "", "", "Eukaryota"),
]
MERGED_ROWS = [
    (100, 1902),  # one hop
    (200, 100),   # chain 200 -> 100 -> 1902
    (300, 301),   # cycle
    (301, 300),
    (400, 555),   # target not in dump
    (1883, 5061), # live id listed as merged, dropped
]


@pytest.fixture
def taxdump_files(tmp_path):
    """Write a small rankedlineage.dmp, merged.dmp and MIBiG data dir."""
    ranked = tmp_path / "rankedlineage.dmp"
    ranked.write_text("".join(dmp_line(*row) for row in RANKED_LINEAGE_ROWS), encoding="utf-8")
    merged = tmp_path / "merged.dmp"
    merged.write_text("".join(dmp_line(*row) for row in MERGED_ROWS), encoding="utf-8")

    datadir = tmp_path / "mibig"
    (datadir / "v3").mkdir(parents=True)
    (datadir / "v4").mkdir(parents=True)
    # MIBiG 3 layout, referencing a deprecated id
    (datadir / "v3" / "BGC0000001.json").write_text(
        json.dumps({"cluster": {"mibig_accession": "BGC0000001", "ncbi_tax_id": "200",
                                "organism_name": "Streptomyces coelicolor"}}),
        encoding="utf-8",
    )
    # MIBiG 4 layout
    (datadir / "v4" / "BGC0000002.json").write_text(
        json.dumps({"accession": "BGC0000002",
                    "taxonomy": {"name": "Aspergillus niger", "ncbiTaxId": 5061}}),
        encoding="utf-8",
    )
    return ranked, merged, datadir
