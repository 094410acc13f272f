"""inkflow: manuscript state engine for an LLM-assisted writing tool."""

__version__ = "0.1.0"
