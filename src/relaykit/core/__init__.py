"""Engine components: presence, routing, read receipts, and the orchestrator."""
