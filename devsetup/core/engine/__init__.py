"""
Engine — command runner, interrupt coordination, step registry, orchestrator.
"""
