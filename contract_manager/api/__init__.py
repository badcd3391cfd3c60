"""HTTP API over the contract registry."""
