"""Core infrastructure: configuration, logging, exceptions, loaders."""
