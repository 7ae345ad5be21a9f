"""Services — pure functions over the domain models."""
