"""
Expense Tracker - Source Package

Backend for a personal income/expense tracker.

DESIGN PRINCIPLES:
1. One query/aggregation core, many storage backends
2. Every backend returns identical results for identical data
3. Fail loudly on storage problems, never silently
4. Every mutation is auditable
5. Storage layer is swappable at startup
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
