"""Riskify - SWMS document generation service"""

__version__ = "1.0.0"
