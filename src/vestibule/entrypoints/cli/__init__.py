"""Command-line interface for VESTIBULE (``vestibule ...``)."""
