"""
Transcript parity validator.

Drives an implementation under test and a reference interpreter through the
same command sequences, records both transcripts and classifies every
divergence as RNG noise, downstream state drift or a genuine logic bug.
"""

__version__ = "1.0"
