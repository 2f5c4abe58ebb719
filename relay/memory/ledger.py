"""Dedup ledger — ids of items already forwarded to Discord.

In-memory only. A restart forgets everything, so recently seen items can be
delivered again (at-least-once).
"""

HIGH_WATER_MARK = 1000


class DedupLedger:
    def __init__(self, high_water_mark=HIGH_WATER_MARK):
        self.high_water_mark = high_water_mark
        # dict keeps insertion order; values unused
        self._seen = {}

    def has(self, item_id):
        return item_id in self._seen

    def record(self, item_id):
        """Remember an id. Past the high-water mark, drop the oldest half in one go."""
        if item_id in self._seen:
            return
        self._seen[item_id] = None
        if len(self._seen) > self.high_water_mark:
            evict = self.high_water_mark // 2
            for old_id in list(self._seen)[:evict]:
                del self._seen[old_id]

    def __contains__(self, item_id):
        return self.has(item_id)

    def __len__(self):
        return len(self._seen)
