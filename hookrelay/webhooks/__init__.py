"""Review webhook adapters, trigger evaluation and dispatch."""
