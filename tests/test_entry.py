import dataclasses

import pytest

from mibig_taxa import TaxonEntry, RANKS, UNKNOWN

from conftest import ASPERGILLUS, STREPTOMYCES, make_entry


def test_str_shows_name_and_id():
    assert str(STREPTOMYCES) == "Streptomyces (1883)"


def test_unresolved_ranks_use_sentinel():
    e = TaxonEntry(tax_id=42, name="thing", genus="", family=None)
    for rank in RANKS:
        assert e.rank(rank) == UNKNOWN
    # never None, never empty
    assert all(v == UNKNOWN for v in e.lineage().values())


def test_entry_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        STREPTOMYCES.name = "Other"


def test_rank_accepts_plain_class_name():
    assert ASPERGILLUS.rank("class") == "Eurotiomycetes"
    assert ASPERGILLUS.class_ == "Eurotiomycetes"
    with pytest.raises(KeyError):
        ASPERGILLUS.rank("clade")


def test_dict_conversion_keeps_all_fields():
    d = ASPERGILLUS.to_dict()
    assert list(d) == ["tax_id", "name", *RANKS]
    assert d["class"] == "Eurotiomycetes"
    assert TaxonEntry.from_dict(d) == ASPERGILLUS


def test_from_dict_accepts_class_underscore_and_fills_missing():
    e = TaxonEntry.from_dict({"tax_id": "7", "name": "x", "class_": "Dinophyceae"})
    assert e.tax_id == 7
    assert e.rank("class") == "Dinophyceae"
    assert e.superkingdom == UNKNOWN


def test_entry_classifies_itself():
    assert STREPTOMYCES.get_antismash_taxon() == "bacteria"
    assert ASPERGILLUS.get_antismash_taxon() == "fungi"
    assert make_entry(1, "x", superkingdom="Eukaryota", kingdom="Viridiplantae").get_antismash_taxon() == "plants"
