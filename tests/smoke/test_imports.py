def test_import_package_and_contract():
    import importlib
    mod = importlib.import_module("mibig_taxa")
    for name in mod.__all__:
        assert hasattr(mod, name), f"mibig_taxa missing {name}"


def test_cache_exposes_query_surface():
    from mibig_taxa import TaxonCache

    required_callables = [
        "initialise_from_paths",
        "load_path",
        "save_path",
        "get",
        "get_name_by_id",
        "get_antismash_taxon",
    ]
    cache = TaxonCache()
    for name in required_callables:
        assert callable(getattr(cache, name, None)), f"TaxonCache.{name} is not callable"


def test_cli_entry_point():
    from mibig_taxa.cli import main, COMMANDS
    assert callable(main)
    assert set(COMMANDS) == {"build", "info", "get", "export"}
