"""Host adapters for the replay engine."""
