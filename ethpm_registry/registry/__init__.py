"""Registry — ownership and release bookkeeping for EthPM packages.

The registry provides:
- Publishing: record a manifest URI for a (name, version) pair, once
- Ownership: the first publisher of a name owns it until they transfer it
- Lookup: manifest URIs, version history and owners by package name
"""
