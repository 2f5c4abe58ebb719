"""Audit trail of forwarded items. Write-only from the relay's point of view:
dedup never reads it back."""

import json


def log_delivery(db, trace_id, category, thread_id, item_id, item_type, channel, metadata=None):
    db.execute(
        "INSERT INTO deliveries (trace_id, category, thread_id, item_id, item_type, channel, metadata) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (trace_id, category, thread_id, item_id, item_type, channel,
         json.dumps(metadata) if metadata else None)
    )
    db.commit()

