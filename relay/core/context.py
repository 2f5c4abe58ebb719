from dataclasses import dataclass, field

from relay.memory.ledger import DedupLedger


@dataclass
class RelayContext:
    """Process-wide state, built once in main() and passed to whoever mutates it."""

    ledger: DedupLedger = field(default_factory=DedupLedger)
    # lowercased username -> discord.TextChannel
    routes: dict = field(default_factory=dict)
