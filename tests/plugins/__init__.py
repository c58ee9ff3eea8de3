"""
Tests for the SQL Server ID-list benchmark modules

No SQL Server is needed: pyodbc connections are replaced with mocks.
"""

import os
import sys

# Add plugins directory to Python path when the package is not installed
plugins_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', 'plugins'))
if plugins_dir not in sys.path:
    sys.path.insert(0, plugins_dir)
