"""ethpm-registry — an append-only registry of EthPM package releases.

Package authors publish (name, version) -> manifest URI records; the first
publisher of a name owns it and is the only account allowed to publish
further versions or hand the name to someone else.
"""

__version__ = "0.1.0"
