"""
Model-Graph Decompiler (MGDC) Package

Turns an in-memory model object graph (shared references, occasional
cycles) into an ordered list of declarative modeling-language statements.

ARCHITECTURAL GUARANTEE:
------------------------
The decompiled artifact never holds node references.
Statements and expressions point at nodes only through identifiers,
so the output outlives the graph it was built from.

Parsing the language back into a graph is NOT part of this package.
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
