"""Document store engine and persistence backends.

This package holds collections, query matching, relations, transactions
and the snapshot backends the engine persists through.
"""
