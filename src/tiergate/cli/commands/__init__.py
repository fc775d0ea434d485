"""CLI command implementations for tiergate.

This module contains the command group implementations:
- gate: Score raw provider output offline
- run: Route a request through the provider tiers
- experiment: Benchmark configured A/B experiments
- config: Manage configuration
"""
