"""
Document Assistant

Chat with uploaded documents (retrieval-augmented generation over a Chroma
collection and OpenAI) and look up Slack lunch, update and report status.
"""

__version__ = "0.1.0"
