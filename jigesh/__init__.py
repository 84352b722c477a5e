"""Jigesh study assistant: account, subscription and usage-quota core"""

__version__ = "1.0.0"
