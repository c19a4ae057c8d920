"""Conversation services: registry, store, agent, interpreter, stats, orchestrator."""
