"""
Steps — named, idempotency-checked installation units.

Each step module registers nothing on import; ``defaults`` builds the
registries the CLI uses.
"""
