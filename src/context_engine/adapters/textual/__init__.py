"""Textual front end for the context list view."""

from .controller import ActionResult, ContextListAdapter, TextualUIHooks

__all__ = ["ActionResult", "ContextListAdapter", "TextualUIHooks"]
