"""
inventory_sync -- Offline action queue and reconciliation.

A client records inventory mutations in a durable local queue while it
is disconnected.  When connectivity returns, the sync coordinator sends
the pending batch to the server, where the reconciliation engine replays
each action against live product state in its own SAVEPOINT.  Applied
actions are marked synced and purged; rejected ones stay pending with a
reason.

Architecture:
    inventory_sync/ depends on inventory_kernel/.  Nothing in the kernel
    imports from inventory_sync at module level.

Invariants:
    - Replay strictly in enqueue order
    - One action's rejection never aborts the batch
    - Product change and audit row commit together or not at all
    - Only server-confirmed actions are marked synced
    - At most one sync in flight per coordinator
"""
