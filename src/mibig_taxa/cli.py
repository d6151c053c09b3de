# SPDX-License-Identifier: MIT
# src/mibig_taxa/cli.py
"""
Command-line tool for building, inspecting and querying taxon caches.

  mibig-taxa build [TAXDUMP MERGED DATADIR] -o taxa.parquet
  mibig-taxa info --cache taxa.parquet
  mibig-taxa get 1883 562 --field taxon --allow-deprecated
  mibig-taxa export -o taxa.tsv
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .cache import TaxonCache
from .classifier import AntismashClassifier
from .config import Settings
from .errors import BuildError, MibigTaxonError, PersistenceError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    cfg = Settings()
    ap = argparse.ArgumentParser(prog="mibig-taxa", description="NCBI taxon cache for MIBiG")
    ap.add_argument("--log-level", default=cfg.log_level)
    ap.add_argument("--rules", default=cfg.rules_file,
                    help="YAML antiSMASH rule table (default: built-in rules)")
    sub = ap.add_subparsers(dest="command", help="Command to execute")

    b = sub.add_parser("build", help="Build a cache from NCBI dumps and MIBiG entries")
    b.add_argument("taxdump", nargs="?", default=cfg.taxdump, help="rankedlineage.dmp")
    b.add_argument("merged", nargs="?", default=cfg.merged_dump, help="merged.dmp")
    b.add_argument("datadir", nargs="?", default=cfg.data_dir, help="Directory of MIBiG JSON entries")
    b.add_argument("-o", "--output", default=cfg.cache_file, help="Cache file to write")

    i = sub.add_parser("info", help="Show cache size")
    i.add_argument("--cache", default=cfg.cache_file)

    g = sub.add_parser("get", help="Look up taxon ids")
    g.add_argument("tax_ids", nargs="+", type=int)
    g.add_argument("--cache", default=cfg.cache_file)
    g.add_argument("--field", choices=["entry", "name", "taxon"], default="entry")
    g.add_argument("--allow-deprecated", action=argparse.BooleanOptionalAction, default=cfg.allow_deprecated,
                   help="Fall back to merged/deprecated ids")

    e = sub.add_parser("export", help="Write the cache as a CSV/TSV table")
    e.add_argument("--cache", default=cfg.cache_file)
    e.add_argument("-o", "--output", required=True, help="Output path (.csv for commas, else tabs)")

    args = ap.parse_args(argv)
    if not args.command:
        ap.print_help()
        ap.exit(2)
    if args.command == "build" and not (args.taxdump and args.merged and args.datadir):
        ap.error("build needs TAXDUMP, MERGED and DATADIR "
                 "(or MIBIG_TAXA_TAXDUMP, MIBIG_TAXA_MERGED, MIBIG_TAXA_DATA_DIR)")
    return args


def _make_cache(args: argparse.Namespace) -> TaxonCache:
    classifier = AntismashClassifier.from_yaml(args.rules) if args.rules else None
    return TaxonCache(classifier=classifier)


def cmd_build(args: argparse.Namespace) -> int:
    cache = _make_cache(args)
    cache.initialise_from_paths(args.taxdump, args.merged, args.datadir)
    n = cache.save_path(args.output)
    print(f"Wrote {n} taxa ({len(cache.deprecated_ids)} deprecated ids) to {args.output}")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    cache = _make_cache(args)
    cache.load_path(args.cache)
    print(f"Cache:          {args.cache}")
    print(f"Taxa:           {len(cache)}")
    print(f"Deprecated ids: {len(cache.deprecated_ids)}")
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    cache = _make_cache(args)
    cache.load_path(args.cache)

    failed = 0
    for tax_id in args.tax_ids:
        try:
            if args.field == "name":
                out = cache.get_name_by_id(tax_id, args.allow_deprecated)
            elif args.field == "taxon":
                out = cache.get_antismash_taxon(tax_id, args.allow_deprecated)
            else:
                out = json.dumps(cache.get(tax_id, args.allow_deprecated).to_dict())
        except ValueError as e:
            failed += 1
            print(f"{tax_id}\t{e}", file=sys.stderr)
            continue
        print(f"{tax_id}\t{out}")
    return 1 if failed else 0


def cmd_export(args: argparse.Namespace) -> int:
    cache = _make_cache(args)
    cache.load_path(args.cache)
    out = Path(args.output)
    sep = "," if out.suffix.lower() == ".csv" else "\t"
    out.parent.mkdir(parents=True, exist_ok=True)
    cache.to_frame().to_csv(out, sep=sep, index=False)
    print(f"Exported {len(cache)} taxa to {out}")
    return 0


COMMANDS = {
    "build": cmd_build,
    "info": cmd_info,
    "get": cmd_get,
    "export": cmd_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.command](args)
    except (BuildError, PersistenceError) as e:
        logger.error(str(e))
        return 2
    except MibigTaxonError as e:
        logger.error(str(e))
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
