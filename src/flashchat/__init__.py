"""FlashMath AI study assistant: tool-calling chat over flashcard data."""

__version__ = "0.1.0"
