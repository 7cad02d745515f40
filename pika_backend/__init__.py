"""Pika notes backend - diff-driven review of AI-formatted notes"""

__version__ = "1.0.0"
