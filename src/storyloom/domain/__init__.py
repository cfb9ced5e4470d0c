"""Domain model: rule definitions, evaluation and classification."""
