"""Adapters binding the pipeline to Markdown and browser libraries."""
