#!/usr/bin/env python3
"""
Benchmark script comparing STRING_SPLIT against table-valued parameters.
Provisions a scratch SQL Server database, then measures each strategy.

Connection settings and benchmark parameters come from environment
variables; see plugins/tvp_benchmark/config.py.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'plugins'))

from tvp_benchmark.suite import main

if __name__ == "__main__":
    sys.exit(main())
