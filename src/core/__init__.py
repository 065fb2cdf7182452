"""Core domain package for querylens.

Core contains trigger compilation, scanning, projection, validation and the
interaction state machine without any Textual or I/O code, keeping the
annotation logic portable across renderers.
"""
