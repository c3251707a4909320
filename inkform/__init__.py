"""Inkform: delivery-form OCR post-extraction pipeline.

Cleans noisy OCR field values from scanned ink delivery forms
(Arabic/English), validates them, and learns from reviewer corrections.
"""

__version__ = "1.0.0"
