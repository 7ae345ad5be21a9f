"""Core — engine, steps, services, and use cases. No click imports here."""
