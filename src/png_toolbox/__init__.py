"""PNG Toolbox — structural PNG chunk decoding and inspection."""

__version__ = "0.1.0"
