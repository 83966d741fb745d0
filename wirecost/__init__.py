"""Wire costing sheet — costing calculator, sheet store, and HTTP API."""
