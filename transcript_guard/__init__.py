"""
Transcript Guard - prompt injection screening for untrusted transcripts.
"""

__version__ = "0.3.0"
