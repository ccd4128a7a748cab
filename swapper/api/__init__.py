"""HTTP interface for quotes and swaps."""
