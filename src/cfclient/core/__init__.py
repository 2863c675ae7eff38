"""Core building blocks: errors, observability, HTTP contract and the resilience pipeline."""
