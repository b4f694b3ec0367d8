#!/usr/bin/env python3
"""
Homunculus package runner.
`python3 -m homunculus` dispatches to cli.main().
"""

import sys

from homunculus.cli import main

if __name__ == '__main__':
    sys.exit(main())
