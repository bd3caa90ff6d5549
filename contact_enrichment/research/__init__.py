"""Web research: provider contract, rate-limit gate, and resilient adapter."""
