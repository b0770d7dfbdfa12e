"""
Feature Model Configuration Package

Acquires the feature models a variability-aware analysis consults when it
asks whether a combination of features is allowed.

ARCHITECTURAL GUARANTEE:
------------------------
Two models are resolved per run:
    - the general feature model
    - the type-system feature model (falls back to the general one)

Sources (DIMACS files, FExpr files, factory classes) are applied in a single
configuration pass. After that pass both models are read-only.

When nothing is configured, the universal model (no constraints) is used.
"""

__version__ = "0.1.0"
