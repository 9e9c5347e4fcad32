"""
confessboard - Anonymous single-slot confession board

One confession at a time, open voting, and authorship that only the
poster can recognise, backed by a local SQLite ledger.
"""

__version__ = "0.1.0"
__author__ = "confessboard Project"
