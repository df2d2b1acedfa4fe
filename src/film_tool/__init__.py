"""
Film Tool Package

Film roll estimation and freight pricing for the sales desk.
Resolves shipping cost using Vendor → Route → Weight Tier pipeline with a universal low-weight tariff.
"""

__version__ = "1.0.0"
