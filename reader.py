#!/usr/bin/env python3
"""
Standalone snapshot reader for Mission Control.
Builds one resource payload in-process (no HTTP server) and prints it as JSON.
Usage: python reader.py [resource ...]   (default: every resource)
"""
import json
import sys

from app import RESOURCE_BUILDERS


def read_snapshots(names):
    """Return ``{name: payload}`` for each requested resource name."""
    unknown = [name for name in names if name not in RESOURCE_BUILDERS]
    if unknown:
        raise KeyError(f"unknown resource(s): {', '.join(unknown)}")
    return {name: RESOURCE_BUILDERS[name]() for name in names}


def main(argv=None):
    names = list(argv if argv is not None else sys.argv[1:]) or list(RESOURCE_BUILDERS)
    try:
        snapshots = read_snapshots(names)
    except KeyError as e:
        print(f'[READER] {e.args[0]}; choose from {", ".join(RESOURCE_BUILDERS)}', file=sys.stderr)
        return 2
    print(json.dumps(snapshots, indent=2, ensure_ascii=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
