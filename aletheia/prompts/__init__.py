"""Prompt templates sent to the chat-completion gateway."""
