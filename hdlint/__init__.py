"""
hdlint - rule-based lint engine for hardware-description-language syntax trees.
"""

__version__ = "0.1.0"
