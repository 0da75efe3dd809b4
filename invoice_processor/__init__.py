"""
Invoice Processor.

Upload invoice images/PDFs, extract their fields with an LLM vision model,
and keep the resulting records in a store with an approval toggle.
"""

__version__ = "1.0.0"
