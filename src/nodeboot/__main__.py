"""
CLI entry point. Parses args and delegates to pipeline.
"""

import sys
from typing import Optional

from .cli import parse_args
from .pipeline import run_render


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    try:
        text = run_render(
            cluster_path=args.cluster,
            instance_group_path=args.instance_group,
            nodeup_url=args.nodeup_url,
            nodeup_hash=args.nodeup_hash,
            node_config_path=args.node_config,
            output_path=args.output,
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output is None:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
