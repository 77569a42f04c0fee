"""Core configuration, logging, errors and the RBAC resolution engine."""
