"""Business logic. Services own their transactions and raise core.exceptions."""
