"""
Query language parser for MCQUERY.

Provides lexical analysis, parsing, and AST construction for
model-checking queries: quantifiers, temporal modalities, run bounds,
and the condition and arithmetic sub-languages underneath them.
"""
