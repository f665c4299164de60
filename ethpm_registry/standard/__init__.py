"""Naming and manifest rules for EthPM v3 packages.

This package provides:
1. Naming — character-class predicates for package names, contract names,
   contract aliases and manifest version tags
2. Manifest validator — applies the naming rules across a manifest document
"""

MANIFEST_VERSION = "ethpm/3"

# v2 manifests carried their schema version under this key; v3 forbids it.
FORBIDDEN_MANIFEST_KEY = "manifest_version"

MAX_CONTRACT_NAME_LENGTH = 256
MAX_CONTRACT_ALIAS_LENGTH = 256
