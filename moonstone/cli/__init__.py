"""moonstone command-line interface."""
