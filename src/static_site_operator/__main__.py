"""Command line entry point.

``python -m static_site_operator`` runs the operator across all namespaces;
``python -m static_site_operator print-crd`` (or PRINT_CRD=1) prints the CRD.
"""

from __future__ import annotations

import os
import sys

import kopf

from .crd import render_crd


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if os.getenv("PRINT_CRD") or args[:1] == ["print-crd"]:
        sys.stdout.write(render_crd())
        return 0

    from . import main as operator_main  # noqa: F401  registers the kopf handlers

    kopf.run(clusterwide=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
