"""YouTube knowledge base pipeline.

This package fetches YouTube video transcripts, summarizes and categorizes
them with a configurable LLM provider, records lightweight indexing metadata
and answers questions over stored transcripts.
"""
