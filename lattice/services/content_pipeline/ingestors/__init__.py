"""
Source-specific ingestion implementations.
"""
