"""
MCQUERY: Model-Checking QUERY parser.

Parses textual model-checking properties (reachability, invariance,
probabilistic and bounded temporal queries) into an immutable abstract
syntax tree handed to a verification engine.
"""

__version__ = "0.1.0"
