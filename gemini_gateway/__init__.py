"""
Gemini OpenAI Gateway

Serves the OpenAI chat-completion protocol on top of the Google Gemini API.
"""

__version__ = "0.1.0"
