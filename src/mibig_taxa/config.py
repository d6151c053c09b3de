# SPDX-License-Identifier: MIT
# src/mibig_taxa/config.py
from dataclasses import dataclass, asdict
import os
from typing import Optional, Dict, Any

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_bool(name, default=False):
    v = os.getenv(name)
    if v is None: return default
    return str(v).strip().lower() in {"1","true","yes","y","on"}

def _env_path(name) -> Optional[str]:
    v = os.getenv(name, "").strip()
    return v or None

@dataclass(frozen=True)
class Settings:
    # -------- Cache ------------
    cache_file: str        = os.getenv("MIBIG_TAXA_CACHE", "data/taxa.parquet")
    allow_deprecated: bool = _env_bool("MIBIG_TAXA_ALLOW_DEPRECATED", False)

    # -------- Build inputs -----
    taxdump: Optional[str]     = _env_path("MIBIG_TAXA_TAXDUMP")     # rankedlineage.dmp
    merged_dump: Optional[str] = _env_path("MIBIG_TAXA_MERGED")      # merged.dmp
    data_dir: Optional[str]    = _env_path("MIBIG_TAXA_DATA_DIR")    # MIBiG JSON entries

    # -------- Classifier -------
    rules_file: Optional[str] = _env_path("MIBIG_TAXA_RULES")       # YAML rule table override

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # helper: convert to dict (useful for logging)
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_overrides(**kwargs) -> "Settings":
        """
        Build Settings and apply runtime overrides (e.g., parsed CLI flags).
        Only keys that match fields will be overridden.
        """
        base = Settings()
        current = base.to_dict()
        current.update({k: v for k, v in kwargs.items() if k in current and v is not None})
        return Settings(**current)  # type: ignore[arg-type]
