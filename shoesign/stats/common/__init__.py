"""Generic, scheme-independent numerical methods."""
