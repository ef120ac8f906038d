"""
CLI argument parsing.
"""

import argparse
from pathlib import Path
from typing import Optional


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nodeboot",
        description="Render the first-boot bootstrap script for a Kubernetes instance group.",
    )
    parser.add_argument(
        "--cluster",
        type=Path,
        required=True,
        metavar="FILE",
        help="Cluster spec (JSON if the name ends in .json, YAML otherwise)",
    )
    parser.add_argument(
        "--instance-group",
        dest="instance_group",
        type=Path,
        required=True,
        metavar="FILE",
        help="Instance group spec (JSON or YAML)",
    )
    parser.add_argument(
        "--node-config",
        dest="node_config",
        type=Path,
        metavar="FILE",
        help="Node agent config embedded verbatim in the script (default: empty)",
    )

    # Node agent source
    parser.add_argument(
        "--nodeup-url",
        dest="nodeup_url",
        type=str,
        required=True,
        metavar="URL",
        help="Download URL of the nodeup binary",
    )
    parser.add_argument(
        "--nodeup-hash",
        dest="nodeup_hash",
        type=str,
        required=True,
        metavar="SHA256",
        help="Expected sha256 of the nodeup binary; the script refuses to run it on mismatch",
    )

    parser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        metavar="FILE",
        help="Write the script to FILE instead of stdout",
    )

    return parser.parse_args(argv)
