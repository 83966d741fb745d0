"""
Deterministic costing calculators.

Pure Python math. No DB, no network.
Given raw specification fields, produce the derived costing values
stored on the Costing sheet.
"""
