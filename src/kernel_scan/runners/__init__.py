"""Entry points and the analyzer orchestrating a full kernel scan."""
