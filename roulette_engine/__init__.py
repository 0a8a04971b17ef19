"""Single-table roulette: wager ledger, payout resolver and spin scheduler."""
