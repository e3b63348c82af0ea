"""User interfaces built on top of the luogu-saver API."""
