"""
Use cases — one entry point per CLI command.

Each returns a result dataclass with ``to_dict()`` and ``exit_code``.
"""
