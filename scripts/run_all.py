"""
run_all.py

Regenerate every density artifact: the synthetic sweep CSVs, then the
markdown report and figures built from them.

Usage:
    python scripts/run_all.py
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]

# (tag, script) in dependency order
STEPS = [
    ("sweep", "scripts/run_density.py"),
    ("report", "scripts/make_density_report.py"),
]


def main() -> None:
    for tag, script in STEPS:
        print(f"[run_all:{tag}] {script}")
        res = subprocess.run([sys.executable, script], cwd=ROOT)
        if res.returncode != 0:
            raise RuntimeError(f"{script} exited with {res.returncode}")

    print("[run_all] done, see reports/DENSITY_REPORT.md and reports/figures/")


if __name__ == "__main__":
    main()
