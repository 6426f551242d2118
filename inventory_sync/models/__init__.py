"""
inventory_sync.models -- ORM model for the client-local action queue.
"""

from inventory_sync.models.queue import QueuedActionModel, create_queue_table

__all__ = ["QueuedActionModel", "create_queue_table"]
