"""Configuration, domain models, errors and collaborator protocols."""
