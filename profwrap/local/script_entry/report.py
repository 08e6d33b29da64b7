"""
Default post-processor: prints a readable summary of a cProfile artifact.

Usage: python -m profwrap.local.script_entry.report <artifact> [limit]
"""
import sys
import pstats

import profwrap.settings as default_settings


def print_report(path: str, limit: int = default_settings.PROFILE_REPORT_LIMIT,
                 sort: str = default_settings.PROFILE_REPORT_SORT, stream=None) -> None:
    """Writes the `limit` most expensive entries of the profile at `path` to `stream`."""
    stats = pstats.Stats(path, stream=stream or sys.stdout)
    stats.strip_dirs().sort_stats(sort).print_stats(limit)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: python -m profwrap.local.script_entry.report <artifact> [limit]", file=sys.stderr)
        return 2
    limit = int(argv[1]) if len(argv) > 1 else default_settings.PROFILE_REPORT_LIMIT
    try:
        print_report(argv[0], limit)
    except (OSError, EOFError, TypeError, ValueError) as e:
        print(f"Could not read profile '{argv[0]}': {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
