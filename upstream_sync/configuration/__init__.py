"""Configuration reconciliation and the command line interface."""
