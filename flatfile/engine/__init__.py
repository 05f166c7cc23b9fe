"""FlatFile Engine — Configuration, error hierarchy, structured logging."""
