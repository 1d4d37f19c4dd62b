"""Codemode Service - type-check TypeScript and run it in a sandbox"""

__version__ = "0.1.0"
