"""Wire helpers for the display process: frame codec and message envelopes."""
