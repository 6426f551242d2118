"""
Inventory Kernel

Authoritative server-side state for the retail inventory tracker:
- Products with quantity and shelf location
- Append-only adjustment and location history
- Low-stock notification
- Structured logging and typed errors shared by every package
"""

__version__ = "0.1.0"
