"""
DataSculpt

Natural language analytics: turns business questions into SQL, executes the
SQL read-only against PostgreSQL or MySQL, and shapes the rows for charting.
"""

__version__ = "0.1.0"
