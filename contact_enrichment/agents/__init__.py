"""Specialized enrichment agents and the orchestrator that sequences them."""
