"""Media Anchor: authenticated hash submission with ledger anchoring."""

__version__ = "0.1.0"
