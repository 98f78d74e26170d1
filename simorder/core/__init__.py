"""Core records and hash distances."""
