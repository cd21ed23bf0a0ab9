"""Name-only quiz service with a durable attempt history."""
