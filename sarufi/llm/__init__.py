"""Oracle clients, tool descriptors and prompts."""
