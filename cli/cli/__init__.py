"""ContextKeeper command-line interface."""
