"""
Sales Kernel

Shared foundation for the sales360 core:
- Structured JSON logging
- Typed exception hierarchy
- Injectable clock and explicit user scope
- Domain types for sales, rule tables, challenges and configuration
- Per-user persistence of every application domain
"""

__version__ = "0.1.0"
