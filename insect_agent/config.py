"""
Environment settings for the insect classification cascade.

Values are read once at import. A local .env file is honoured.
CLI flags override these per invocation; the threshold (tau) itself
lives in memory on the orchestrator and is never written back.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# insect_agent/config.py -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Gemini (secondary model)
GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# Cascade defaults
DEFAULT_TAU: float = float(os.getenv("INSECT_AGENT_TAU", "70.0"))
DEFAULT_TOP_K: int = int(os.getenv("INSECT_AGENT_TOP_K", "5"))
SECONDARY_TIMEOUT_S: float = float(os.getenv("INSECT_AGENT_VLM_TIMEOUT", "60"))

# Static resources
DATA_DIR = Path(os.getenv("INSECT_AGENT_DATA_DIR", str(PROJECT_ROOT / "data")))
KNOWLEDGE_PATH = DATA_DIR / "enhanced_visual_knowledge.json"
CLASS_INDEX_PATH = DATA_DIR / "subset_class_to_idx.json"

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


def check_environment(verbose=True):
    """
    Checks that the static resources and the Gemini key are in place.
    Returns True when everything needed for a full cascade run is present.
    """
    is_healthy = True

    if verbose: print(f"[SETUP] Checking environment at: {DATA_DIR}")

    for label, path in (("Knowledge base", KNOWLEDGE_PATH), ("Class index", CLASS_INDEX_PATH)):
        if path.exists():
            if verbose: print(f"[OK] {label} found: {path.name}")
        else:
            is_healthy = False
            if verbose: print(f"[WARN] {label} is MISSING: {path}")

    if os.getenv("GEMINI_API_KEY") or GEMINI_API_KEY:
        if verbose: print("[OK] GEMINI_API_KEY set.")
    else:
        is_healthy = False
        if verbose:
            print("[WARN] GEMINI_API_KEY is MISSING (required when confidence falls below tau).")
            print("Set it using: export GEMINI_API_KEY='your_key' or add it to .env")

    return is_healthy
